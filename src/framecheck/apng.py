"""Frame-sequential APNG decoding and streaming encoding.

``ApngReader`` decodes a golden animation one frame at a time through Pillow, so
only the current frame is ever held in memory. Pillow handles any animated format
it can open (APNG, GIF, WebP), which lets GIF goldens be verified as well.

``ApngWriter`` appends frames to an APNG as they arrive instead of collecting them
for a single ``save_all`` call. Each frame is PNG-encoded by Pillow and its ``IDAT``
payload re-wrapped as animation chunks; the frame count in ``acTL`` is patched in
place on close.
"""

import io
import logging
import struct
import zlib
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image

from .config import DEFAULT_VERIFIER_CONFIG, VerifierConfig
from .error_handling import ResourceError, error_context
from .frames import as_rgba, pad_frame
from .interfaces import FrameSink, FrameSource
from .io import LOCAL_FILE_SYSTEM, FileSystem, discard_file

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# IHDR: 8-bit RGBA, deflate, adaptive filtering, no interlace
_BIT_DEPTH = 8
_COLOR_TYPE_RGBA = 6

# fcTL dispose_op / blend_op
_DISPOSE_OP_NONE = 0
_BLEND_OP_SOURCE = 0

_MAX_DELAY_DENOMINATOR = 0xFFFF

# Rates a GIF delay is snapped back to; GIF stores delays in whole centiseconds
_STANDARD_FRAME_RATES = (1, 2, 4, 5, 8, 10, 12, 15, 20, 24, 25, 30, 50)


def _chunk(chunk_type: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def _encoded_image_data(frame: np.ndarray) -> list[bytes]:
    """PNG-encode *frame* with Pillow and return the payloads of its ``IDAT`` chunks."""
    buffer = io.BytesIO()
    Image.fromarray(frame).save(buffer, format="PNG")
    data = buffer.getvalue()

    payloads = []
    position = len(PNG_SIGNATURE)
    while position < len(data):
        (length,) = struct.unpack(">I", data[position : position + 4])
        chunk_type = data[position + 4 : position + 8]
        if chunk_type == b"IDAT":
            payloads.append(data[position + 8 : position + 8 + length])
        position += length + 12
    return payloads


def _gif_fps(duration: float) -> int:
    """Recover the frame rate behind a GIF delay of *duration* milliseconds.

    Encoders either truncate or round the ideal delay to centiseconds, so 30 fps is
    stored as 30 ms and would otherwise read back as 33 fps. The standard rate that
    quantises to *duration* and lies closest to the naive reading wins; any other
    delay falls back to the naive rate.
    """
    centiseconds = round(duration / 10)
    naive_fps = max(1, round(1000.0 / duration))
    candidates = [
        fps
        for fps in _STANDARD_FRAME_RATES
        if centiseconds in (int(100 / fps), round(100 / fps))
    ]
    if not candidates:
        return naive_fps
    return min(candidates, key=lambda fps: abs(fps - naive_fps))


class ApngReader(FrameSource):
    """Lazily decoded animation backed by Pillow.

    Args:
        fp: Binary file object positioned at the start of the animation
        config: Supplies the frame rate assumed for still images
    """

    def __init__(self, fp: BinaryIO, config: VerifierConfig = DEFAULT_VERIFIER_CONFIG):
        self._fp = fp
        with error_context("open animation", ResourceError, logger=logger):
            self._image = Image.open(fp)
            self.width, self.height = self._image.size
            self.frame_count = getattr(self._image, "n_frames", 1)
            self.fps = self._read_fps(config.DEFAULT_STILL_FPS)
        self._frame_number = 0

    def _read_fps(self, default_fps: int) -> int:
        duration = self._image.info.get("duration")
        if not duration:
            return default_fps
        if self._image.format == "GIF":
            return _gif_fps(duration)
        return max(1, round(1000.0 / duration))

    @property
    def current_frame_index(self) -> int:
        return self._frame_number

    def read_next_frame(self) -> np.ndarray | None:
        if self.is_finished():
            return None

        with error_context(
            "decode animation frame",
            ResourceError,
            context={"frame": self._frame_number},
            logger=logger,
        ):
            self._image.seek(self._frame_number)
            frame = np.array(self._image.convert("RGBA"))

        self._frame_number += 1
        return frame

    def is_finished(self) -> bool:
        return self._frame_number >= self.frame_count

    def reset(self) -> None:
        # Pillow cannot seek backwards through an APNG once past the first frame
        with error_context("rewind animation", ResourceError, logger=logger):
            self._image.close()
            self._fp.seek(0)
            self._image = Image.open(self._fp)
        self._frame_number = 0

    def close(self) -> None:
        self._image.close()
        self._fp.close()


class ApngWriter(FrameSink):
    """Streaming APNG encoder.

    The canvas size is fixed by the first frame. Smaller frames are padded with
    transparent pixels; larger ones are clipped to the canvas.

    Args:
        fp: Seekable binary file object opened for writing
        fps: Playback rate, stored as a ``1/fps`` frame delay
    """

    def __init__(self, fp: BinaryIO, fps: int):
        if not 1 <= fps <= _MAX_DELAY_DENOMINATOR:
            raise ValueError(f"fps must be between 1 and {_MAX_DELAY_DENOMINATOR}, got {fps}")

        self._fp = fp
        self.fps = fps
        self._frames_written = 0
        self._sequence_number = 0
        self._canvas: tuple[int, int] | None = None
        self._actl_offset = 0
        self._closed = False
        self._failed = False

    @property
    def frames_written(self) -> int:
        return self._frames_written

    def write_image(self, frame: np.ndarray) -> None:
        if self._closed:
            raise ResourceError("Cannot write to a closed APNG writer")

        frame = as_rgba(frame)
        try:
            with error_context(
                "write animation frame",
                ResourceError,
                context={"frame": self._frames_written},
                logger=logger,
            ):
                if self._canvas is None:
                    self._write_header(frame.shape[1], frame.shape[0])
                frame = self._fit_to_canvas(frame)
                width, height = self._canvas

                frame_control = struct.pack(
                    ">IIIIIHHBB",
                    self._next_sequence_number(),
                    width,
                    height,
                    0,
                    0,
                    1,
                    self.fps,
                    _DISPOSE_OP_NONE,
                    _BLEND_OP_SOURCE,
                )
                self._fp.write(_chunk(b"fcTL", frame_control))

                for payload in _encoded_image_data(frame):
                    if self._frames_written == 0:
                        # The first frame doubles as the default image
                        self._fp.write(_chunk(b"IDAT", payload))
                    else:
                        sequence = struct.pack(">I", self._next_sequence_number())
                        self._fp.write(_chunk(b"fdAT", sequence + payload))
        except BaseException:
            # A partial chunk makes the file undecodable
            self._failed = True
            raise

        self._frames_written += 1

    def _write_header(self, width: int, height: int) -> None:
        if width == 0 or height == 0:
            raise ValueError(f"Cannot encode an empty {width}x{height} frame")

        header = struct.pack(">IIBBBBB", width, height, _BIT_DEPTH, _COLOR_TYPE_RGBA, 0, 0, 0)
        self._fp.write(PNG_SIGNATURE)
        self._fp.write(_chunk(b"IHDR", header))
        self._actl_offset = self._fp.tell()
        self._fp.write(_chunk(b"acTL", struct.pack(">II", 0, 0)))
        self._canvas = (width, height)

    def _fit_to_canvas(self, frame: np.ndarray) -> np.ndarray:
        width, height = self._canvas
        frame_h, frame_w = frame.shape[:2]
        if frame_w > width or frame_h > height:
            logger.warning(
                f"⚠️  Clipping {frame_w}x{frame_h} frame to {width}x{height} animation canvas"
            )
            frame = np.ascontiguousarray(frame[:height, :width])
        return pad_frame(frame, width, height)

    def _next_sequence_number(self) -> int:
        number = self._sequence_number
        self._sequence_number += 1
        return number

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._failed:
            logger.warning("⚠️  Discarding partially written animation")
            discard_file(self._fp)
            return

        try:
            if self._canvas is not None:
                with error_context("finish animation", ResourceError, logger=logger):
                    self._fp.write(_chunk(b"IEND", b""))
                    end = self._fp.tell()
                    self._fp.seek(self._actl_offset)
                    # num_plays = 0 loops forever
                    self._fp.write(
                        _chunk(b"acTL", struct.pack(">II", self._frames_written, 0))
                    )
                    self._fp.seek(end)
        except BaseException:
            discard_file(self._fp)
            raise
        self._fp.close()


def open_animation(path: Path, file_system: FileSystem = LOCAL_FILE_SYSTEM) -> ApngReader:
    """Open *path* for frame-by-frame reading, closing the file if decoding fails."""
    with error_context("open animation", ResourceError, context={"path": str(path)}, logger=logger):
        fp = file_system.open_read(path)
    try:
        return ApngReader(fp)
    except BaseException:
        fp.close()
        raise
