"""Per-pixel comparison of a golden frame against an actual frame."""

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .frames import as_rgba, pad_frame

NEUTRAL_DELTA = (0x80, 0x80, 0x80, 0x00)
LABEL_COLOR = (255, 0, 0, 255)
MIN_LABELLED_WIDTH = 80


@dataclass
class FrameComparison:
    """Result of comparing two frames."""

    delta_image: np.ndarray  # [expected | delta | actual], RGBA
    percent_different: float


def compare_frames(
    expected: np.ndarray, actual: np.ndarray, with_text: bool = True
) -> FrameComparison:
    """Compare *actual* against *expected* and visualise the per-pixel delta.

    The delta panel is transparent mid-gray wherever the pixels are identical or
    both fully transparent. Elsewhere each colour channel is drawn as
    ``0x80 + (actual - expected) / 2`` with the average of both alphas.

    The percent difference is the summed absolute RGB delta over the largest
    possible delta (3 channels x 256 levels per pixel), scaled to 0-100.

    Args:
        expected: Golden frame
        actual: Frame under test
        with_text: Label the outer panels "Expected" and "Actual"

    Returns:
        FrameComparison with the three-panel image and percent difference
    """
    expected = as_rgba(expected)
    actual = as_rgba(actual)

    width = max(expected.shape[1], actual.shape[1])
    height = max(expected.shape[0], actual.shape[0])
    expected = pad_frame(expected, width, height)
    actual = pad_frame(actual, width, height)

    golden = expected.astype(np.int16)
    image = actual.astype(np.int16)

    identical = np.all(golden == image, axis=2)
    both_transparent = (golden[..., 3] == 0) & (image[..., 3] == 0)
    neutral = identical | both_transparent

    channel_delta = image[..., :3] - golden[..., :3]
    # Truncating division keeps the sign symmetric around 0x80
    shifted = (0x80 + np.trunc(channel_delta / 2).astype(np.int16)) & 0xFF
    average_alpha = (golden[..., 3] + image[..., 3]) // 2

    delta = np.dstack([shifted, average_alpha]).astype(np.uint8)
    delta[neutral] = NEUTRAL_DELTA

    total = width * height * 3 * 256
    if total == 0:
        percent_different = 0.0
    else:
        summed = int(np.abs(channel_delta)[~neutral].sum())
        percent_different = summed * 100 / total

    composite = np.zeros((height, width * 3, 4), dtype=np.uint8)
    composite[:, :width] = expected
    composite[:, width : 2 * width] = delta
    composite[:, 2 * width :] = actual

    if with_text and width > MIN_LABELLED_WIDTH:
        composite = _draw_labels(composite, width)

    return FrameComparison(delta_image=composite, percent_different=percent_different)


def _draw_labels(composite: np.ndarray, width: int) -> np.ndarray:
    canvas = Image.fromarray(composite)
    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()
    # y=20 is the baseline of the label
    for label, x in (("Expected", 10), ("Actual", 2 * width + 10)):
        bottom = draw.textbbox((0, 0), label, font=font)[3]
        draw.text((x, 20 - bottom), label, fill=LABEL_COLOR, font=font)
    return np.array(canvas)
