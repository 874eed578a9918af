"""Configuration settings for framecheck."""

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass
class VerifierConfig:
    """Configuration for animated golden verification with environment variable overrides."""

    # Percent difference a single frame comparison may reach before it is
    # recorded as invalid.
    # Override with: FRAMECHECK_MAX_PERCENT_DIFFERENCE
    MAX_PERCENT_DIFFERENCE: float = 0.1

    # Draw "Expected"/"Actual" labels on delta images and the caption on blank frames.
    # Override with: FRAMECHECK_WITH_ERROR_TEXT
    WITH_ERROR_TEXT: bool = True

    # Blank placeholder caption
    BLANK_TEXT: str = "Intentionally left blank"
    BLANK_PADDING: int = 20
    BLANK_FONT_SIZE: int = 40
    CAPTION_FIT_MAX_ITERATIONS: int = 8

    # Frame rate reported for still (single image) goldens without timing data
    DEFAULT_STILL_FPS: int = 1

    def __post_init__(self) -> None:
        """Apply environment variable overrides, then validate."""
        tolerance = os.getenv("FRAMECHECK_MAX_PERCENT_DIFFERENCE")
        if tolerance:
            try:
                self.MAX_PERCENT_DIFFERENCE = float(tolerance)
            except ValueError as e:
                raise ValueError(
                    f"FRAMECHECK_MAX_PERCENT_DIFFERENCE must be a number, got {tolerance!r}"
                ) from e

        with_text = os.getenv("FRAMECHECK_WITH_ERROR_TEXT")
        if with_text:
            if with_text.lower() in _TRUTHY:
                self.WITH_ERROR_TEXT = True
            elif with_text.lower() in _FALSY:
                self.WITH_ERROR_TEXT = False
            else:
                raise ValueError(
                    f"FRAMECHECK_WITH_ERROR_TEXT must be a boolean, got {with_text!r}"
                )

        if not 0 <= self.MAX_PERCENT_DIFFERENCE <= 100:
            raise ValueError(
                f"MAX_PERCENT_DIFFERENCE must be between 0 and 100, got {self.MAX_PERCENT_DIFFERENCE}"
            )
        if self.BLANK_PADDING < 0:
            raise ValueError(f"BLANK_PADDING must be non-negative, got {self.BLANK_PADDING}")
        if self.BLANK_FONT_SIZE <= 0:
            raise ValueError(f"BLANK_FONT_SIZE must be positive, got {self.BLANK_FONT_SIZE}")
        if self.CAPTION_FIT_MAX_ITERATIONS < 1:
            raise ValueError(
                f"CAPTION_FIT_MAX_ITERATIONS must be at least 1, got {self.CAPTION_FIT_MAX_ITERATIONS}"
            )
        if self.DEFAULT_STILL_FPS < 1:
            raise ValueError(
                f"DEFAULT_STILL_FPS must be at least 1, got {self.DEFAULT_STILL_FPS}"
            )


# Default configuration instance
DEFAULT_VERIFIER_CONFIG = VerifierConfig()
