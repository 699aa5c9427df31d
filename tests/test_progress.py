"""Tests for progress reporting."""

from regionocr.extraction.progress import PHASE_ANALYZE, ProgressReporter


class TestProgressReporter:
    def _collect(self, **kwargs):
        updates = []
        return ProgressReporter(lambda p, m: updates.append((p, m)), **kwargs), updates

    def test_values_clamped(self):
        reporter, updates = self._collect()
        reporter.report(-10, "a")
        reporter.report(250, "b")
        assert [p for p, _ in updates] == [0, 100]

    def test_never_moves_backward(self):
        reporter, updates = self._collect()
        reporter.report(50, "half")
        assert reporter.report(30, "late") == 50
        assert updates[-1] == (50, "late")

    def test_sweep_includes_both_ends(self):
        reporter, updates = self._collect()
        reporter.sweep(*PHASE_ANALYZE, "Analyzing")
        assert [p for p, _ in updates] == [0, 5, 10, 15]

    def test_complete_delivers_100(self):
        reporter, updates = self._collect()
        reporter.report(100, "done")
        reporter.complete()
        assert updates[-1] == (100, "Complete!")
        assert reporter.last == 100

    def test_no_handler(self):
        reporter = ProgressReporter(None)
        assert reporter.report(40, "x") == 40
