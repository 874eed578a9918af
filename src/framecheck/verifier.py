"""Verification of an animation, frame by frame, against a golden APNG.

The caller drives an ``AnimationVerifier`` with one ``verify_frame`` call per
rendered frame, then calls ``assert_finished`` once and ``close`` once. When the
golden and actual animations disagree, a diagnostic APNG is written whose frames
are three-panel delta images aligned to the golden timeline.

Golden and actual animations may run at different frame rates. Both are mapped
onto a common timeline at the least common multiple of the two rates, where each
actual frame lasts ``actual_deltas_per_frame`` ticks and each golden frame
``expected_deltas_per_frame`` ticks. Every diagnostic frame is one tick.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

import numpy as np

from .apng import ApngReader, ApngWriter
from .comparison import compare_frames
from .config import DEFAULT_VERIFIER_CONFIG, VerifierConfig
from .error_handling import (
    ConfigurationError,
    IssueKind,
    ResourceError,
    VerificationFailure,
    VerifierStateError,
    error_context,
)
from .frames import as_rgba, create_blank_frame, resize_to_common_canvas
from .interfaces import FrameComparator, FrameSink, FrameSource
from .io import LOCAL_FILE_SYSTEM, FileSystem, discard_file
from .rates import RateReconciliation

logger = logging.getLogger(__name__)


class VerifierState(Enum):
    """Lifecycle of an ``AnimationVerifier``."""

    OPEN = "open"
    DIAGNOSING = "diagnosing"  # diagnostic writer active
    FINALIZED = "finalized"
    CLOSED = "closed"


@dataclass
class VerificationReport:
    """Everything ``assert_finished`` found wrong with a run."""

    max_percent_difference: float
    golden_fps: int
    actual_fps: int
    golden_frame_count: int
    actual_frame_count: int
    delta_path: Path | None = None
    invalid_frames: list[float] = field(default_factory=list)

    @property
    def issues(self) -> list[IssueKind]:
        issues = []
        if self.invalid_frames:
            issues.append(IssueKind.TOLERANCE_EXCEEDED)
        if self.golden_fps != self.actual_fps:
            issues.append(IssueKind.RATE_MISMATCH)
        if self.golden_frame_count != self.actual_frame_count:
            issues.append(IssueKind.COUNT_MISMATCH)
        return issues

    @property
    def passed(self) -> bool:
        return not self.issues

    def compose_message(self) -> str:
        """Multi-line failure message, or an empty string for a passing run."""
        issues = self.issues
        if not issues:
            return ""

        lines = []
        if IssueKind.TOLERANCE_EXCEEDED in issues:
            lines.append(
                f"{len(self.invalid_frames)} frames differed by more than "
                f"{self.max_percent_difference:.1f}%"
            )
        if IssueKind.RATE_MISMATCH in issues:
            lines.append(
                f"Mismatched video fps expected: {self.golden_fps} actual: {self.actual_fps}"
            )
        if IssueKind.COUNT_MISMATCH in issues:
            lines.append(
                f"Mismatched frame count expected: {self.golden_frame_count} "
                f"actual: {self.actual_frame_count}"
            )
        if self.delta_path is not None:
            lines.append(f" - see details in file://{self.delta_path}")
        return "\n".join(lines) + "\n"


def backfill_deltas(
    source: FrameSource,
    count: int,
    blank_frame: np.ndarray,
    with_text: bool = True,
    comparator: FrameComparator = compare_frames,
) -> Iterator[np.ndarray]:
    """Yield zero-difference delta images for the first *count* golden frames.

    Rewinds *source* and compares each frame with itself, so the diagnostic
    animation shows the golden content for frames that were checked before any
    mismatch was found. Leaves *source* positioned after frame ``count - 1``.
    """
    source.reset()
    for _ in range(count):
        golden = source.read_next_frame()
        if golden is None:
            golden = blank_frame
        yield comparator(golden, golden, with_text).delta_image


class AnimationVerifier:
    """Compare an animation against a golden one, frame by frame.

    Args:
        golden_path: Golden animation to verify against
        delta_path: Where the diagnostic animation is written if anything differs
        fps: Declared frame rate of the actual animation
        frame_count: Declared number of actual frames
        max_percent_difference: Per-frame tolerance (config default when None)
        file_system: Opens the golden and diagnostic files
        with_error_text: Draw labels and blank captions (config default when None)
        comparator: Produces the delta image and percent difference for two frames
        config: Defaults for tolerance, captions and still-image frame rate
        reader_factory: Decodes the golden file (APNG via Pillow by default)
        writer_factory: Encodes the diagnostic file (streaming APNG by default)

    Raises:
        ConfigurationError: If fps < 1 or frame_count < 0
        ResourceError: If the golden animation cannot be opened or decoded

    Not safe for concurrent use; frames must be verified in the order rendered.
    """

    def __init__(
        self,
        golden_path: Path,
        delta_path: Path,
        fps: int,
        frame_count: int,
        max_percent_difference: float | None = None,
        file_system: FileSystem = LOCAL_FILE_SYSTEM,
        with_error_text: bool | None = None,
        comparator: FrameComparator = compare_frames,
        config: VerifierConfig = DEFAULT_VERIFIER_CONFIG,
        reader_factory: Callable[[BinaryIO, VerifierConfig], FrameSource] = ApngReader,
        writer_factory: Callable[[BinaryIO, int], FrameSink] = ApngWriter,
    ):
        if fps < 1:
            raise ConfigurationError(f"fps must be at least 1, got {fps}")
        if frame_count < 0:
            raise ConfigurationError(f"frame_count must be non-negative, got {frame_count}")

        self.golden_path = Path(golden_path)
        self.delta_path = Path(delta_path)
        self.fps = fps
        self.frame_count = frame_count
        self.max_percent_difference = (
            config.MAX_PERCENT_DIFFERENCE
            if max_percent_difference is None
            else max_percent_difference
        )
        self.with_error_text = (
            config.WITH_ERROR_TEXT if with_error_text is None else with_error_text
        )
        self._file_system = file_system
        self._comparator = comparator
        self._config = config
        self._reader_factory = reader_factory
        self._writer_factory = writer_factory

        self._invalid_frames: list[float] = []
        self._delta_writer: FrameSink | None = None
        self._blank_frame: np.ndarray | None = None
        # Golden frames compared before the diagnostic writer existed
        self._undiagnosed = 0
        self._state = VerifierState.OPEN

        self._reader = self._open_reader()
        try:
            self._current_golden = self._reader.read_next_frame()
            if self._reader.fps < 1:
                raise ConfigurationError(
                    f"Golden animation reports invalid fps {self._reader.fps}"
                )
            self.rates = RateReconciliation.from_rates(fps, self._reader.fps)

            if frame_count != self._reader.frame_count or fps != self._reader.fps:
                logger.info(
                    f"Golden {self.golden_path.name} declares {self._reader.frame_count} frames "
                    f"@ {self._reader.fps} fps, actual declares {frame_count} @ {fps} fps"
                )
                self._open_delta_writer()
        except BaseException:
            self.close()
            raise

    def _open_reader(self) -> FrameSource:
        with error_context(
            "open golden animation",
            ResourceError,
            context={"path": str(self.golden_path)},
            logger=logger,
        ):
            fp = self._file_system.open_read(self.golden_path)
        try:
            return self._reader_factory(fp, self._config)
        except BaseException:
            fp.close()
            raise

    def _open_delta_writer(self) -> FrameSink:
        with error_context(
            "open diagnostic animation",
            ResourceError,
            context={"path": str(self.delta_path)},
            logger=logger,
        ):
            fp = self._file_system.open_write(self.delta_path)
        try:
            with error_context(
                "open diagnostic animation",
                ResourceError,
                context={
                    "path": str(self.delta_path),
                    "fps": self.rates.common_frame_rate,
                },
                logger=logger,
            ):
                self._delta_writer = self._writer_factory(fp, self.rates.common_frame_rate)
        except BaseException:
            discard_file(fp)
            raise
        self._state = VerifierState.DIAGNOSING
        logger.info(
            f"Writing diagnostic animation to {self.delta_path} "
            f"@ {self.rates.common_frame_rate} fps"
        )
        return self._delta_writer

    @property
    def state(self) -> VerifierState:
        return self._state

    @property
    def invalid_frames(self) -> list[float]:
        return list(self._invalid_frames)

    @property
    def diagnostic_frames_written(self) -> int:
        """Frames in the diagnostic animation so far, 0 when none was opened."""
        if self._delta_writer is None:
            return 0
        return self._delta_writer.frames_written

    @property
    def blank_frame(self) -> np.ndarray:
        """Placeholder for golden frames that do not exist; built on first use."""
        if self._blank_frame is None:
            self._blank_frame = create_blank_frame(
                self._reader.width,
                self._reader.height,
                with_text=self.with_error_text,
                config=self._config,
            )
        return self._blank_frame

    def _compare(self, golden: np.ndarray | None, actual: np.ndarray) -> tuple[np.ndarray, float]:
        expected, actual = resize_to_common_canvas(
            self.blank_frame if golden is None else golden, actual
        )
        result = self._comparator(expected, actual, self.with_error_text)
        return result.delta_image, result.percent_different

    def verify_frame(self, frame: Any) -> None:
        """Compare the next actual frame against the golden timeline.

        Out-of-tolerance frames are recorded, not raised; ``assert_finished``
        reports them all at once.
        """
        if self._state in (VerifierState.FINALIZED, VerifierState.CLOSED):
            raise VerifierStateError(f"Cannot verify frames once {self._state.value}")

        actual = as_rgba(frame)
        delta_image, percent_different = self._compare(self._current_golden, actual)
        logger.debug(f"Frame compared: {percent_different:.3f}% different")

        if percent_different > self.max_percent_difference:
            if self._delta_writer is None:
                self._start_diagnostics()
            self._invalid_frames.append(percent_different)

        writer = self._delta_writer
        if writer is None:
            if self._current_golden is not None:
                self._undiagnosed += 1
            self._current_golden = self._reader.read_next_frame()
            return

        for _ in range(self.rates.actual_deltas_per_frame):
            writer.write_image(delta_image)
            # Golden timeline reached the end of its current frame
            if writer.frames_written % self.rates.expected_deltas_per_frame == 0:
                self._current_golden = self._reader.read_next_frame()
                delta_image, _ = self._compare(self._current_golden, actual)

    def _start_diagnostics(self) -> None:
        """Open the diagnostic writer late and back-fill the frames already passed."""
        writer = self._open_delta_writer()
        for delta_image in backfill_deltas(
            self._reader,
            self._undiagnosed,
            self.blank_frame,
            self.with_error_text,
            self._comparator,
        ):
            for _ in range(self.rates.expected_deltas_per_frame):
                writer.write_image(delta_image)

        # Re-read the frame under comparison to restore the cursor behind it
        if self._current_golden is not None:
            self._reader.read_next_frame()
        self._undiagnosed = 0

    def _drain_golden(self) -> None:
        """Pad the diagnostic animation out to the full golden timeline."""
        writer = self._delta_writer
        ticks = self.rates.expected_deltas_per_frame

        if self._current_golden is not None:
            delta_image, percent_different = self._compare(
                self._current_golden, self.blank_frame
            )
            for _ in range(ticks - writer.frames_written % ticks):
                writer.write_image(delta_image)
            self._invalid_frames.append(percent_different)
            self._current_golden = None

        while not self._reader.is_finished():
            golden = self._reader.read_next_frame()
            delta_image, percent_different = self._compare(golden, self.blank_frame)
            for _ in range(ticks):
                writer.write_image(delta_image)
            self._invalid_frames.append(percent_different)

    def assert_finished(self) -> VerificationReport:
        """Finish the run and raise if anything differed.

        Returns:
            The report of a passing run

        Raises:
            VerificationFailure: With the composed report as its message
        """
        if self._state in (VerifierState.FINALIZED, VerifierState.CLOSED):
            raise VerifierStateError(f"Verifier already {self._state.value}")

        diagnosing = self._delta_writer is not None
        if diagnosing:
            self._drain_golden()
        self._state = VerifierState.FINALIZED

        report = VerificationReport(
            max_percent_difference=self.max_percent_difference,
            golden_fps=self._reader.fps,
            actual_fps=self.fps,
            golden_frame_count=self._reader.frame_count,
            actual_frame_count=self.frame_count,
            delta_path=self.delta_path if diagnosing else None,
            invalid_frames=list(self._invalid_frames),
        )

        # Without a diagnostic writer nothing was ever out of tolerance
        if not diagnosing:
            return report

        message = report.compose_message()
        if message:
            logger.info(f"❌ {self.golden_path.name} did not match:\n{message}")
            raise VerificationFailure(message, report=report)
        return report

    def close(self) -> None:
        """Release the golden reader and diagnostic writer. Safe to call repeatedly."""
        if self._state == VerifierState.CLOSED:
            return
        self._state = VerifierState.CLOSED

        reader = getattr(self, "_reader", None)
        try:
            if reader is not None:
                reader.close()
        finally:
            if self._delta_writer is not None:
                self._delta_writer.close()

    def __enter__(self) -> "AnimationVerifier":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def verify_animation(
    golden_path: Path,
    frames: Iterable[Any],
    fps: int,
    delta_path: Path,
    frame_count: int | None = None,
    **kwargs: Any,
) -> VerificationReport:
    """Verify a whole animation in one call.

    Args:
        golden_path: Golden animation
        frames: Actual frames in playback order
        fps: Frame rate of the actual animation
        delta_path: Diagnostic animation destination
        frame_count: Declared frame count (``len(frames)`` when None)
        **kwargs: Passed through to ``AnimationVerifier``

    Returns:
        The report of a passing run

    Raises:
        VerificationFailure: If the animation does not match
    """
    if frame_count is None:
        frames = list(frames)
        frame_count = len(frames)

    with AnimationVerifier(golden_path, delta_path, fps, frame_count, **kwargs) as verifier:
        for frame in frames:
            verifier.verify_frame(frame)
        return verifier.assert_finished()
