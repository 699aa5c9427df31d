"""Runs extraction jobs off the interactive thread and merges their results.

Threading model:
    submit()                      interactive thread
    preprocessing + recognition   single worker thread
    merge + completion callbacks  interactive thread, via call_soon

The UI supplies call_soon to marshal work back onto its own thread (for Qt,
a queued signal). Without one, completion runs on the worker thread, which
is fine for scripts and tests that only wait on the returned future.
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

import numpy as np

from regionocr.config import AppSettings
from regionocr.errors import (
    EngineError,
    InputError,
    JobInFlightError,
    PreprocessingError,
    RegionOcrError,
)
from regionocr.extraction.models import (
    AccumulatedText,
    ExtractionJob,
    ExtractionResult,
    ExtractionSummary,
)
from regionocr.extraction.progress import (
    PHASE_ANALYZE,
    PHASE_ENGINE_INIT,
    PHASE_FORMAT,
    PHASE_PREPROCESS,
    PHASE_RECOGNIZE,
    ProgressReporter,
)
from regionocr.ocr.engine import DEFAULT_LANGUAGE, RecognitionEngine, TesseractEngine
from regionocr.ocr.normalizer import TextStatistics, normalize_text, text_statistics
from regionocr.ocr.preprocessor import PreprocessingPipeline

logger = logging.getLogger(__name__)

CompletionHandler = Callable[["ExtractionSummary | RegionOcrError"], None]


def _call_now(fn: Callable[..., Any], *args: Any) -> None:
    fn(*args)


class ExtractionOrchestrator:
    """Single-flight extraction: preprocess, recognise, normalise, merge.

    Args:
        engine: Recognition collaborator.
        pipeline: Preprocessing chain applied before recognition.
        language: Initial language code handed to the engine.
        on_progress: Receives (percent, message); monotonic, ends at 100 on success.
        on_job_complete: Receives an ExtractionSummary or the job's error.
        on_busy_changed: Called with True at submission and False when the job
            finishes (always, including failures). Use it to toggle controls.
        on_region_consumed: Called after a region job finishes so the UI can
            clear the selection highlight.
        call_soon: Marshals a call onto the interactive thread.
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        pipeline: PreprocessingPipeline | None = None,
        language: str = DEFAULT_LANGUAGE,
        on_progress: Callable[[int, str], None] | None = None,
        on_job_complete: CompletionHandler | None = None,
        on_busy_changed: Callable[[bool], None] | None = None,
        on_region_consumed: Callable[[], None] | None = None,
        call_soon: Callable[..., None] | None = None,
    ) -> None:
        self.engine = engine
        self.pipeline = pipeline or PreprocessingPipeline()
        self.on_progress = on_progress
        self.on_job_complete = on_job_complete
        self.on_busy_changed = on_busy_changed
        self.on_region_consumed = on_region_consumed
        self._call_soon = call_soon or _call_now

        self._language = language
        self._accumulated = AccumulatedText()
        self._active: ExtractionJob | None = None
        self._lock = threading.Lock()
        self._job_ids = itertools.count(1)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="regionocr-worker")

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        engine: RecognitionEngine | None = None,
        **handlers: Any,
    ) -> ExtractionOrchestrator:
        """Build an orchestrator (and, unless given, a Tesseract engine) from settings."""
        if engine is None:
            engine = TesseractEngine(
                tesseract_cmd=settings.tesseract_cmd,
                tessdata_dir=settings.tessdata_dir,
            )
        pipeline = PreprocessingPipeline(
            max_width=settings.max_width,
            max_height=settings.max_height,
            invert_threshold=settings.invert_threshold,
            contrast_factor=settings.contrast_factor,
            brightness_offset=settings.brightness_offset,
        )
        return cls(engine, pipeline=pipeline, language=settings.language, **handlers)

    # --- State ---

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, language: str) -> None:
        """Language for subsequent jobs. A running job keeps its own."""
        self._language = language
        logger.info("OCR language set to '%s'", language)

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._active is not None

    @property
    def accumulated(self) -> AccumulatedText:
        return self._accumulated

    @property
    def text(self) -> str:
        return self._accumulated.text

    @property
    def extraction_count(self) -> int:
        return self._accumulated.extraction_count

    def statistics(self) -> TextStatistics:
        return text_statistics(self._accumulated.text)

    def clear(self) -> None:
        """Forget all accumulated text. Does not affect a running job."""
        self._accumulated.clear()
        logger.info("Accumulated text cleared")

    # --- Submission ---

    def submit(self, bitmap: np.ndarray | None, is_region: bool = False) -> Future:
        """Start an extraction of a region or of the whole image.

        Args:
            bitmap: Image to process. A copy is taken; the caller keeps ownership.
            is_region: True when the bitmap is a user-selected sub-region.

        Returns:
            A future resolving to an ExtractionSummary, or raising the job's
            PreprocessingError / EngineError.

        Raises:
            InputError: If there is no bitmap to process.
            JobInFlightError: If another job is still running.
        """
        if bitmap is None or bitmap.size == 0:
            raise InputError("nothing to process")

        with self._lock:
            if self._active is not None:
                raise JobInFlightError(
                    f"extraction job {self._active.job_id} is still running"
                )
            job = ExtractionJob(
                job_id=next(self._job_ids),
                bitmap=bitmap.copy(),
                is_region=is_region,
                language=self._language,
            )
            self._active = job

        kind = "region" if is_region else "full image"
        h, w = bitmap.shape[:2]
        logger.info("Job %d: extracting %s %dx%d (%s)", job.job_id, kind, w, h, job.language)

        handle: Future = Future()
        handle.set_running_or_notify_cancel()
        self._set_busy(True)

        try:
            work = self._executor.submit(self._run_job, job)
        except Exception:
            with self._lock:
                self._active = None
            self._set_busy(False)
            raise
        work.add_done_callback(lambda f: self._call_soon(self._complete, job, f, handle))
        return handle

    def extract_now(
        self, bitmap: np.ndarray | None, is_region: bool = False, timeout: float | None = None
    ) -> ExtractionSummary:
        """Blocking submit for scripts. Do not call from a thread that call_soon targets."""
        return self.submit(bitmap, is_region).result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # --- Worker thread ---

    def _emit_progress(self, percent: int, message: str) -> None:
        if self.on_progress is not None:
            self._call_soon(self.on_progress, percent, message)

    def _run_job(self, job: ExtractionJob) -> ExtractionResult:
        progress = ProgressReporter(self._emit_progress)

        progress.sweep(*PHASE_ANALYZE, "Analyzing image...")

        progress.report(PHASE_PREPROCESS[0], "Preprocessing image...")
        outcome = self.pipeline.run(job.bitmap)
        if not outcome.ok:
            raise PreprocessingError(outcome.failed_stage or "unknown")
        progress.report(PHASE_PREPROCESS[1], "Preprocessing complete")

        progress.report(PHASE_ENGINE_INIT[0], "Initializing OCR engine...")
        try:
            self.engine.ensure_ready()
        except EngineError:
            raise
        except Exception as exc:
            logger.exception("OCR engine initialisation failed")
            raise EngineError(str(exc) or type(exc).__name__) from exc
        progress.report(PHASE_ENGINE_INIT[1], "Extracting text...")

        try:
            raw = self.engine.recognize(outcome.image, job.language)
        except EngineError:
            raise
        except Exception as exc:
            logger.exception("Recognition failed")
            raise EngineError(str(exc) or type(exc).__name__) from exc

        if raw is None:
            raise EngineError("engine returned no result")
        progress.report(PHASE_RECOGNIZE[1], "Text extracted")

        progress.report(PHASE_FORMAT[0], "Cleaning text...")
        result = ExtractionResult.from_text(raw, normalize_text(raw))
        progress.report(90, "Formatting text...")
        progress.complete()
        return result

    # --- Interactive thread ---

    def _complete(self, job: ExtractionJob, work: Future, handle: Future) -> None:
        summary: ExtractionSummary | None = None
        error: RegionOcrError | None = None
        try:
            result = work.result()
            merged = self._accumulated.merge(result.text, job.is_region)
            summary = ExtractionSummary(
                text=self._accumulated.text,
                word_count=self._accumulated.word_count,
                char_count=self._accumulated.char_count,
                extraction_count=self._accumulated.extraction_count,
                result=result,
                is_region=job.is_region,
                merged=merged,
            )
            logger.info(
                "Job %d done: %d words, %d characters (%d extraction(s) accumulated)",
                job.job_id,
                result.word_count,
                result.char_count,
                summary.extraction_count,
            )
        except RegionOcrError as exc:
            logger.warning("Job %d failed: %s", job.job_id, exc)
            error = exc
        except Exception as exc:
            logger.exception("Job %d crashed", job.job_id)
            error = EngineError(str(exc) or type(exc).__name__)
        finally:
            with self._lock:
                self._active = None
            self._set_busy(False)
            if job.is_region and self.on_region_consumed is not None:
                self.on_region_consumed()

        try:
            if self.on_job_complete is not None:
                self.on_job_complete(summary if error is None else error)
        finally:
            if error is None:
                handle.set_result(summary)
            else:
                handle.set_exception(error)

    def _set_busy(self, busy: bool) -> None:
        if self.on_busy_changed is not None:
            self.on_busy_changed(busy)
