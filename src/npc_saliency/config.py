"""Configuration primitives for the NPC saliency pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

CUE_NAMES: tuple[str, ...] = (
    "motion",
    "angular_velocity",
    "proximity",
    "color_contrast",
    "luminance_contrast",
)


class WeightMode(str, Enum):
    """How the five cue weights are produced each frame."""

    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class VisibilityMode(str, Enum):
    """Which occlusion primitive decides eligibility."""

    FRUSTUM = "frustum"
    RAYCAST = "raycast"


class ProximityMode(str, Enum):
    INVERSE_DISTANCE = "inverse_distance"
    SIZE_OVER_DISTANCE = "size_over_distance"


@dataclass(frozen=True)
class AttentionConfig:
    """Holds tunable constants for cue extraction, gating, weighting and scoring.

    **Modes:**
    - weight_mode: FIXED sliders or ADAPTIVE percentile-spread weights
    - visibility_mode: FRUSTUM (+ range) or RAYCAST (+ range)
    - proximity_mode: INVERSE_DISTANCE or SIZE_OVER_DISTANCE

    **Cue Normalization:**
    - sigma_motion: half-saturation speed for the motion cue [units/s]
    - sigma_angular: half-saturation angular speed [deg/s]
    - max_distance: distance at which inverse-distance proximity reaches 0

    **Gating:**
    - attention_range: maximum eye-to-object distance for eligibility

    **Weights:**
    - weight_*: fixed-mode sliders in [0, 1], not required to sum to 1
    - spread_low/high_percentile: percentiles used for adaptive spread
    - spread_epsilon: total spread below which equal weights are used

    **Scoring:**
    - average_fixed_scores: divide fixed-mode sums by the active cue count
    """

    weight_mode: WeightMode = WeightMode.ADAPTIVE
    visibility_mode: VisibilityMode = VisibilityMode.FRUSTUM
    proximity_mode: ProximityMode = ProximityMode.SIZE_OVER_DISTANCE
    use_angular_velocity: bool = True

    sigma_motion: float = 0.1
    sigma_angular: float = 30.0
    max_distance: float = 10.0
    attention_range: float = 50.0

    time_epsilon: float = 1.0e-6
    spread_epsilon: float = 1.0e-6
    spread_low_percentile: float = 0.1
    spread_high_percentile: float = 0.9

    weight_motion: float = 0.2
    weight_angular: float = 0.2
    weight_proximity: float = 0.2
    weight_color: float = 0.2
    weight_luminance: float = 0.2

    average_fixed_scores: bool = False

    default_background: tuple[float, float, float] = (0.5, 0.5, 0.5)

    _background: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Accept plain strings for the modes (CLI / dict configs)
        object.__setattr__(self, "weight_mode", WeightMode(self.weight_mode))
        object.__setattr__(self, "visibility_mode", VisibilityMode(self.visibility_mode))
        object.__setattr__(self, "proximity_mode", ProximityMode(self.proximity_mode))

        for name in ("sigma_motion", "sigma_angular", "max_distance", "attention_range"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(
                    f"{name} must be a positive finite number, got {value}.\n"
                    f"It is used as a divisor or range limit when normalizing cues."
                )

        for name in ("time_epsilon", "spread_epsilon"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}.")

        if not (0.0 <= self.spread_low_percentile <= self.spread_high_percentile <= 1.0):
            raise ValueError(
                f"Spread percentiles must satisfy 0 <= low <= high <= 1, "
                f"got low={self.spread_low_percentile}, high={self.spread_high_percentile}."
            )

        for name in ("weight_motion", "weight_angular", "weight_proximity", "weight_color", "weight_luminance"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ValueError(
                    f"{name} must lie in [0, 1], got {value}.\n"
                    f"Fixed weights are independent sliders; they do not need to sum to 1."
                )

        background = np.asarray(self.default_background, dtype=float)
        if background.shape != (3,):
            raise ValueError(
                f"default_background must be an RGB triple, got shape {background.shape}."
            )
        object.__setattr__(self, "_background", np.clip(background, 0.0, 1.0))

    @property
    def active_cues(self) -> tuple[str, ...]:
        """Cue names that take part in weighting and scoring."""
        if self.use_angular_velocity:
            return CUE_NAMES
        return tuple(name for name in CUE_NAMES if name != "angular_velocity")

    @property
    def cue_count(self) -> int:
        return len(self.active_cues)

    @property
    def background(self) -> np.ndarray:
        """Fallback background color used when no camera is wired in."""
        return self._background
