"""Error types raised by the extraction core."""


class RegionOcrError(Exception):
    """Base class for all per-job errors. None of them are fatal."""


class InputError(RegionOcrError):
    """Nothing usable was supplied (no bitmap, selection too small)."""


class JobInFlightError(InputError):
    """An extraction was requested while another one is still running."""


class GeometryError(RegionOcrError):
    """A display-to-original mapping cannot be computed."""


class PreprocessingError(RegionOcrError):
    """A preprocessing stage could not produce output.

    Args:
        stage: Name of the stage that failed ("resize", "polarity", ...).
    """

    def __init__(self, stage: str, message: str = "preprocessing failed") -> None:
        super().__init__(f"{message} (stage: {stage})")
        self.stage = stage


class EngineError(RegionOcrError):
    """The recognition engine failed or returned nothing usable.

    Args:
        reason: Failure reason as reported by the engine.
    """

    def __init__(self, reason: str, message: str = "extraction failed") -> None:
        super().__init__(f"{message}: {reason}")
        self.reason = reason
