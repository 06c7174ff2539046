"""Configuration constants and dataclasses for tracking fixes."""

from dataclasses import dataclass, replace


# Fixed-point scale of the published tracking coefficients (thousandths of an em)
TRACKING_UNIT: int = 1000

# Significant digits used when deciding whether letter-spacing changed
COMPARE_DIGITS: int = 2

PIXELS: str = "PIXELS"
PERCENT: str = "PERCENT"
LETTER_SPACING_UNITS = (PIXELS, PERCENT)


@dataclass(frozen=True)
class TrackingConfig:
    """Knobs for one tracking-fix invocation."""

    tracking_unit: int = TRACKING_UNIT
    compare_digits: int = COMPARE_DIGITS
    letter_spacing_unit: str = PIXELS
    concurrent: bool = False  # Visit sibling subtrees with asyncio.gather
    stop_on_error: bool = False  # Re-raise font-load failures instead of recording them

    def __post_init__(self):
        if self.tracking_unit <= 0:
            raise ValueError(f"tracking_unit must be positive, got {self.tracking_unit}")
        if self.compare_digits < 1:
            raise ValueError(
                f"compare_digits must be at least 1, got {self.compare_digits}"
            )
        if self.letter_spacing_unit not in LETTER_SPACING_UNITS:
            raise ValueError(
                f"Unknown letter-spacing unit: {self.letter_spacing_unit!r}"
            )

    def with_overrides(self, **overrides) -> "TrackingConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


DEFAULT_CONFIG = TrackingConfig()
