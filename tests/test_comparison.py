"""Tests for framecheck.comparison module."""

import numpy as np
import pytest

from framecheck.comparison import NEUTRAL_DELTA, compare_frames

from animation_helpers import solid_frame


class TestCompareFrames:
    """Tests for compare_frames function."""

    @pytest.mark.fast
    def test_identical_frames(self):
        frame = solid_frame((12, 34, 56))
        result = compare_frames(frame, frame.copy())

        assert result.percent_different == 0.0
        delta_panel = result.delta_image[:, 8:16]
        assert np.all(delta_panel == NEUTRAL_DELTA)

    @pytest.mark.fast
    def test_three_panel_layout(self):
        expected = solid_frame((255, 0, 0), size=(10, 6))
        actual = solid_frame((0, 0, 255), size=(10, 6))
        result = compare_frames(expected, actual, with_text=False)

        assert result.delta_image.shape == (6, 30, 4)
        assert np.array_equal(result.delta_image[:, :10], expected)
        assert np.array_equal(result.delta_image[:, 20:], actual)

    @pytest.mark.fast
    def test_black_against_white(self):
        """Maximum per-channel delta of 255 out of 256 levels."""
        result = compare_frames(solid_frame((0, 0, 0)), solid_frame((255, 255, 255)))

        assert result.percent_different == pytest.approx(255 * 100 / 256)

    @pytest.mark.fast
    def test_delta_pixel_encoding(self):
        expected = solid_frame((100, 100, 100), size=(1, 1))
        actual = solid_frame((120, 90, 100), size=(1, 1))
        result = compare_frames(expected, actual, with_text=False)

        # 0x80 + delta / 2, truncating towards zero
        assert tuple(result.delta_image[0, 1]) == (0x80 + 10, 0x80 - 5, 0x80, 255)
        assert result.percent_different == pytest.approx(30 * 100 / (3 * 256))

    @pytest.mark.fast
    def test_transparent_pixels_never_differ(self):
        expected = np.zeros((4, 4, 4), dtype=np.uint8)
        actual = np.zeros((4, 4, 4), dtype=np.uint8)
        actual[..., :3] = 200  # colour hidden behind zero alpha

        result = compare_frames(expected, actual)

        assert result.percent_different == 0.0

    @pytest.mark.fast
    def test_different_sizes_are_padded(self):
        expected = solid_frame((50, 50, 50), size=(4, 4))
        actual = solid_frame((50, 50, 50), size=(6, 4))
        result = compare_frames(expected, actual, with_text=False)

        assert result.delta_image.shape == (4, 18, 4)
        assert result.percent_different > 0.0

    @pytest.mark.fast
    def test_labels_only_on_wide_frames(self):
        expected = solid_frame((0, 0, 0), size=(120, 40))
        actual = solid_frame((0, 0, 0), size=(120, 40))

        labelled = compare_frames(expected, actual, with_text=True)
        plain = compare_frames(expected, actual, with_text=False)
        assert not np.array_equal(labelled.delta_image, plain.delta_image)
        # Labels never change the metric
        assert labelled.percent_different == plain.percent_different

        narrow = solid_frame((0, 0, 0), size=(40, 40))
        assert np.array_equal(
            compare_frames(narrow, narrow, with_text=True).delta_image,
            compare_frames(narrow, narrow, with_text=False).delta_image,
        )
