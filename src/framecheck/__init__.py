"""framecheck - golden verification for animated snapshots."""

__version__: str = "0.1.0"

# Public re-exports for convenience ---------------------------------------------------

from .apng import ApngReader, ApngWriter
from .comparison import FrameComparison, compare_frames
from .config import DEFAULT_VERIFIER_CONFIG, VerifierConfig
from .error_handling import (
    ConfigurationError,
    FrameCheckError,
    IssueKind,
    ResourceError,
    VerificationFailure,
    VerifierStateError,
)
from .frames import create_blank_frame, resize_to_common_canvas
from .io import LOCAL_FILE_SYSTEM, FileSystem, LocalFileSystem, MemoryFileSystem
from .rates import RateReconciliation, least_common_multiple
from .verifier import (
    AnimationVerifier,
    VerificationReport,
    VerifierState,
    verify_animation,
)

__all__ = [
    "AnimationVerifier",
    "ApngReader",
    "ApngWriter",
    "ConfigurationError",
    "DEFAULT_VERIFIER_CONFIG",
    "FileSystem",
    "FrameCheckError",
    "FrameComparison",
    "IssueKind",
    "LOCAL_FILE_SYSTEM",
    "LocalFileSystem",
    "MemoryFileSystem",
    "RateReconciliation",
    "ResourceError",
    "VerificationFailure",
    "VerificationReport",
    "VerifierConfig",
    "VerifierState",
    "VerifierStateError",
    "compare_frames",
    "create_blank_frame",
    "least_common_multiple",
    "resize_to_common_canvas",
    "verify_animation",
]
