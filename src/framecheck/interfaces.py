"""Abstract interfaces for the animation codecs the verifier drives.

The verifier only relies on frame-sequential access: a source decoded one frame
at a time and a sink appended one frame at a time. ``framecheck.apng`` provides
the default implementations; any other container can be plugged in by
implementing these classes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import numpy as np

from .comparison import FrameComparison


class FrameSource(ABC):
    """Lazily decoded golden animation."""

    width: int
    height: int
    fps: int
    frame_count: int

    @property
    @abstractmethod
    def current_frame_index(self) -> int:
        """Number of frames read since the start (or since the last ``reset``)."""

    @abstractmethod
    def read_next_frame(self) -> np.ndarray | None:
        """Decode the next frame, or return ``None`` once the animation is exhausted."""

    @abstractmethod
    def is_finished(self) -> bool:
        """Return ``True`` iff every frame has been read."""

    @abstractmethod
    def reset(self) -> None:
        """Rewind to the first frame."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying file handle."""

    def __enter__(self) -> FrameSource:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class FrameSink(ABC):
    """Append-only animation encoder running at a fixed frame rate."""

    fps: int

    @property
    @abstractmethod
    def frames_written(self) -> int:
        """Number of frames appended so far."""

    @abstractmethod
    def write_image(self, frame: np.ndarray) -> None:
        """Append one frame."""

    @abstractmethod
    def close(self) -> None:
        """Finish the container and release the file handle. Safe to call twice."""

    def __enter__(self) -> FrameSink:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


#: ``(expected, actual, with_text) -> FrameComparison``
FrameComparator = Callable[[np.ndarray, np.ndarray, bool], FrameComparison]
