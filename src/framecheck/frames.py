"""Frame helpers: RGBA normalisation, padding to a common canvas and blank placeholders."""

from typing import Any

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .config import DEFAULT_VERIFIER_CONFIG, VerifierConfig

TRANSPARENT = (0, 0, 0, 0)
BLANK_BACKGROUND = (0, 0, 0, 255)
BLANK_TEXT_COLOR = (255, 255, 255, 255)


def as_rgba(frame: Any) -> np.ndarray:
    """Convert a Pillow image or numpy array to an ``(H, W, 4)`` uint8 RGBA array.

    Args:
        frame: Pillow image, 2-D grayscale array, RGB array or RGBA array

    Returns:
        RGBA frame

    Raises:
        ValueError: If the input cannot be interpreted as a raster frame
    """
    if isinstance(frame, Image.Image):
        return np.array(frame.convert("RGBA"))

    if not isinstance(frame, np.ndarray):
        raise ValueError(f"Unsupported frame type: {type(frame).__name__}")

    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)

    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_RGB2RGBA)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return frame

    raise ValueError(f"Frame has invalid shape: {frame.shape}")


def pad_frame(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Pad *frame* on the right and bottom with transparent pixels. Never crops."""
    frame_h, frame_w = frame.shape[:2]
    if frame_w > width or frame_h > height:
        raise ValueError(
            f"Cannot pad {frame_w}x{frame_h} frame down to {width}x{height}"
        )

    if (frame_w, frame_h) == (width, height):
        return frame
    if frame_w == 0 or frame_h == 0:
        return np.zeros((height, width, 4), dtype=np.uint8)

    return cv2.copyMakeBorder(
        frame,
        0,
        height - frame_h,
        0,
        width - frame_w,
        cv2.BORDER_CONSTANT,
        value=TRANSPARENT,
    )


def resize_to_common_canvas(
    first: np.ndarray, second: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Pad both frames to the element-wise maximum of their dimensions.

    Unlike a scaling resize this keeps every pixel where it is, so frames that grow
    between runs (e.g. dynamic layout) still compare pixel for pixel.
    """
    width = max(first.shape[1], second.shape[1])
    height = max(first.shape[0], second.shape[0])
    return pad_frame(first, width, height), pad_frame(second, width, height)


def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def fit_caption_font(
    text: str,
    width: int,
    height: int,
    padding: int,
    font_size: int,
    max_iterations: int = 8,
) -> tuple[ImageFont.FreeTypeFont | ImageFont.ImageFont, tuple[int, int]]:
    """Shrink the caption font until *text* fits inside the frame with *padding*.

    Iterates ``scale <- scale * fit`` where ``fit`` is how much of the padded text
    box the frame can hold, stopping once ``fit >= 1`` (or after *max_iterations*
    when glyph metrics stop shrinking, e.g. at the 1px floor).

    Returns:
        Tuple of (font, (text_width, text_height))
    """
    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    scale = 1.0
    font = _load_font(font_size)
    text_size = (0, 0)

    for _ in range(max_iterations):
        font = _load_font(max(1, int(font_size * scale)))
        left, top, right, bottom = measure.textbbox((0, 0), text, font=font)
        text_size = (right - left, bottom - top)

        fit = min(width / (text_size[0] + padding), height / (text_size[1] + padding))
        if fit >= 1:
            break
        scale *= fit

    return font, text_size


def create_blank_frame(
    width: int,
    height: int,
    with_text: bool = True,
    config: VerifierConfig = DEFAULT_VERIFIER_CONFIG,
) -> np.ndarray:
    """Create the placeholder used once the golden animation runs out of frames.

    Args:
        width: Frame width in pixels
        height: Frame height in pixels
        with_text: Draw the centred "Intentionally left blank" caption
        config: Caption text, padding and base font size

    Returns:
        Opaque black RGBA frame, optionally captioned
    """
    image = Image.new("RGBA", (width, height), BLANK_BACKGROUND)
    if not with_text or width == 0 or height == 0:
        return np.array(image)

    font, _ = fit_caption_font(
        config.BLANK_TEXT,
        width,
        height,
        config.BLANK_PADDING,
        config.BLANK_FONT_SIZE,
        config.CAPTION_FIT_MAX_ITERATIONS,
    )
    draw = ImageDraw.Draw(image)
    left, top, right, bottom = draw.textbbox((0, 0), config.BLANK_TEXT, font=font)
    x_offset = (width - (right - left)) / 2 - left
    y_offset = (height - (bottom - top)) / 2 - top
    draw.text((x_offset, y_offset), config.BLANK_TEXT, fill=BLANK_TEXT_COLOR, font=font)
    return np.array(image)
