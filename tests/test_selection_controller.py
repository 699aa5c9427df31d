"""Tests for the drag-to-select state machine."""

from unittest.mock import MagicMock

import numpy as np

from regionocr.selection.controller import SelectionController, SelectionState


def _make_image(width: int = 600, height: int = 400) -> np.ndarray:
    """Gradient image so every region has distinguishable content."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :, 0] = (np.arange(width) % 256).astype(np.uint8)
    img[:, :, 1] = (np.arange(height) % 256).astype(np.uint8)[:, None]
    return img


def _loaded_controller(**kwargs) -> SelectionController:
    ctl = SelectionController(**kwargs)
    ctl.set_image(_make_image())
    ctl.resize(600, 400)
    return ctl


def _drag(ctl: SelectionController, start, end):
    ctl.hover(*start)
    ctl.press(*start)
    ctl.move(*end)
    return ctl.release(*end)


class TestStates:
    def test_starts_idle_without_image(self):
        ctl = SelectionController()
        assert ctl.state is SelectionState.IDLE
        ctl.hover(10, 10)
        assert ctl.state is SelectionState.IDLE

    def test_hover_arms_when_image_loaded(self):
        ctl = _loaded_controller()
        assert ctl.state is SelectionState.IDLE
        ctl.hover(100, 100)
        assert ctl.state is SelectionState.ARMED
        assert ctl.selection_enabled

    def test_press_outside_image_does_not_start_drag(self):
        ctl = SelectionController()
        ctl.set_image(_make_image(1000, 500))
        ctl.resize(600, 400)  # letterboxed: image spans y 50..350
        ctl.hover(100, 10)
        assert not ctl.press(100, 10)
        assert ctl.state is SelectionState.ARMED

    def test_press_move_release_completes(self):
        ctl = _loaded_controller()
        region = _drag(ctl, (100, 100), (200, 150))
        assert ctl.state is SelectionState.COMPLETED
        assert region.shape == (50, 100, 3)

    def test_completed_is_not_rearmed_by_hover(self):
        ctl = _loaded_controller()
        _drag(ctl, (100, 100), (200, 150))
        ctl.hover(300, 300)
        assert ctl.state is SelectionState.COMPLETED
        assert not ctl.press(300, 300)

    def test_rearm_after_completion(self):
        ctl = _loaded_controller()
        _drag(ctl, (100, 100), (200, 150))
        ctl.rearm()
        assert ctl.state is SelectionState.ARMED
        assert ctl.selection_rect is None

    def test_rearm_if_completed_releases_delivered_selection(self):
        ctl = _loaded_controller()
        _drag(ctl, (100, 100), (200, 150))
        assert ctl.rearm_if_completed()
        assert ctl.state is SelectionState.ARMED
        assert ctl.selection_rect is None

    def test_rearm_if_completed_leaves_other_states_alone(self):
        ctl = _loaded_controller()
        assert not ctl.rearm_if_completed()
        assert ctl.state is SelectionState.IDLE

        ctl.hover(100, 100)
        ctl.press(100, 100)
        ctl.move(200, 150)
        assert not ctl.rearm_if_completed()
        assert ctl.state is SelectionState.DRAGGING
        assert ctl.has_selection()

    def test_clear_returns_to_idle(self):
        ctl = _loaded_controller()
        _drag(ctl, (100, 100), (200, 150))
        ctl.clear()
        assert ctl.state is SelectionState.IDLE
        assert not ctl.has_selection()

    def test_disabled_controller_ignores_pointer(self):
        ctl = _loaded_controller()
        ctl.enabled = False
        ctl.hover(100, 100)
        assert ctl.state is SelectionState.IDLE
        assert not ctl.press(100, 100)

    def test_new_image_resets_selection_and_zoom(self):
        ctl = _loaded_controller()
        ctl.zoom_in()
        _drag(ctl, (100, 100), (200, 150))
        ctl.set_image(_make_image(300, 300))
        assert ctl.state is SelectionState.IDLE
        assert ctl.zoom == 1.0
        assert ctl.selection_rect is None


class TestMinimumSize:
    def test_small_drag_discarded_without_callback(self):
        callback = MagicMock()
        ctl = _loaded_controller(on_selection_complete=callback)
        assert _drag(ctl, (100, 100), (105, 200)) is None
        callback.assert_not_called()
        assert ctl.state is SelectionState.IDLE

    def test_threshold_is_strict(self):
        ctl = _loaded_controller(min_size=10)
        assert _drag(ctl, (100, 100), (110, 110)) is None
        ctl.rearm()
        assert _drag(ctl, (100, 100), (111, 111)) is not None

    def test_has_selection_during_drag(self):
        ctl = _loaded_controller()
        ctl.hover(100, 100)
        ctl.press(100, 100)
        ctl.move(105, 105)
        assert not ctl.has_selection()
        ctl.move(150, 150)
        assert ctl.has_selection()


class TestCallback:
    def test_called_once_with_original_region(self):
        callback = MagicMock()
        ctl = _loaded_controller(on_selection_complete=callback)
        _drag(ctl, (100, 100), (200, 150))
        callback.assert_called_once()
        region = callback.call_args.args[0]
        expected = _make_image()[100:150, 100:200]
        np.testing.assert_array_equal(region, expected)

    def test_region_is_a_copy(self):
        ctl = _loaded_controller()
        region = _drag(ctl, (100, 100), (200, 150))
        region[:] = 0
        assert ctl.image[120, 150].any()

    def test_region_maps_to_full_resolution(self):
        ctl = SelectionController()
        ctl.set_image(_make_image(1200, 800))
        ctl.resize(600, 400)  # displayed at half size
        region = _drag(ctl, (50, 50), (150, 100))
        assert region.shape == (100, 200, 3)

    def test_zoomed_selection_covers_fewer_original_pixels(self):
        ctl = _loaded_controller()
        ctl.set_zoom(2.0)
        # Image is 1200x800 on screen, offset (-300, -200)
        region = _drag(ctl, (300, 200), (400, 300))
        assert region.shape == (50, 50, 3)
        np.testing.assert_array_equal(region, _make_image()[200:250, 300:350])

    def test_unmappable_selection_reports_error(self):
        callback, on_error = MagicMock(), MagicMock()
        ctl = SelectionController(on_selection_complete=callback, on_error=on_error)
        # 10x10 image shown at 40x: a 20px drag covers half an original pixel
        ctl.set_image(_make_image(10, 10))
        ctl.resize(600, 400)
        assert _drag(ctl, (300, 200), (320, 220)) is None
        callback.assert_called_once_with(None)
        on_error.assert_called_once_with("Selected area is too small or outside the image")
        assert ctl.state is SelectionState.IDLE
        assert ctl.selection_rect is None


class TestGeometryChanges:
    def test_resize_during_drag_keeps_start_point(self):
        ctl = _loaded_controller()
        ctl.hover(100, 100)
        ctl.press(100, 100)
        ctl.move(500, 350)
        # Shrinking the panel clamps the live rectangle to the new bounds
        ctl.resize(300, 200)
        rect = ctl.selection_rect
        assert ctl.state is SelectionState.DRAGGING
        assert rect.x == 100 and rect.y == 100
        assert rect.x + rect.width <= 300
        assert rect.y + rect.height <= 200

    def test_zoom_steps(self):
        ctl = _loaded_controller()
        ctl.zoom_in()
        assert ctl.zoom == 1.25
        ctl.zoom_out()
        ctl.zoom_out()
        assert ctl.zoom == 0.75
        ctl.reset_zoom()
        assert ctl.zoom == 1.0

    def test_contains_display_point(self):
        ctl = SelectionController()
        ctl.set_image(_make_image(1000, 500))
        ctl.resize(600, 400)
        assert ctl.contains_display_point(300, 200)
        assert not ctl.contains_display_point(300, 20)
