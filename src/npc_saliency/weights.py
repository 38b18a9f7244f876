"""Cue weighting: fixed sliders or adaptive percentile-spread weights."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from loguru import logger

from .config import CUE_NAMES, AttentionConfig, WeightMode
from .cues import CueSet


@dataclass(frozen=True, slots=True)
class WeightVector:
    motion: float = 0.0
    angular_velocity: float = 0.0
    proximity: float = 0.0
    color_contrast: float = 0.0
    luminance_contrast: float = 0.0

    @classmethod
    def from_mapping(cls, values: dict[str, float]) -> "WeightVector":
        return cls(**{name: float(values.get(name, 0.0)) for name in CUE_NAMES})

    def as_array(self, names: tuple[str, ...] = CUE_NAMES) -> np.ndarray:
        return np.array([getattr(self, name) for name in names], dtype=float)

    @property
    def total(self) -> float:
        return float(self.as_array().sum())


def compute_spread(values: Iterable[float], low: float = 0.1, high: float = 0.9) -> float:
    """Spread between two nearest-rank percentiles of `values`.

    Values are sorted and indexed at floor(p·(n−1)); the spread is
    max(0, v_high − v_low). An empty collection has spread 0.

    Args:
        values: Cue values for the currently eligible objects.
        low: Lower percentile as a fraction (default 10th).
        high: Upper percentile as a fraction (default 90th).

    Returns:
        Non-negative spread.
    """
    ordered = np.sort(np.asarray(list(values), dtype=float))
    if ordered.size == 0:
        return 0.0
    last = ordered.size - 1
    v_low = ordered[int(math.floor(low * last))]
    v_high = ordered[int(math.floor(high * last))]
    return max(0.0, float(v_high - v_low))


def fixed_weights(config: AttentionConfig) -> WeightVector:
    return WeightVector(
        motion=config.weight_motion,
        angular_velocity=config.weight_angular if config.use_angular_velocity else 0.0,
        proximity=config.weight_proximity,
        color_contrast=config.weight_color,
        luminance_contrast=config.weight_luminance,
    )


def equal_weights(active_cues: Sequence[str]) -> WeightVector:
    share = 1.0 / len(active_cues)
    return WeightVector.from_mapping({name: share for name in active_cues})


def adaptive_weights(cue_sets: Sequence[CueSet], config: AttentionConfig) -> WeightVector:
    """Weight each active cue by its share of the total population spread.

    A cue that barely varies across the eligible objects cannot tell them
    apart this frame and receives a proportionally small weight. When the
    total spread is below `config.spread_epsilon` every active cue gets 1/k.
    """
    active = config.active_cues
    spreads = {
        name: compute_spread(
            (getattr(cues, name) for cues in cue_sets),
            config.spread_low_percentile,
            config.spread_high_percentile,
        )
        for name in active
    }
    total = sum(spreads.values())
    if total < config.spread_epsilon:
        return equal_weights(active)
    return WeightVector.from_mapping({name: spread / total for name, spread in spreads.items()})


class WeightPolicy:
    """Produces the frame's weight vector according to `config.weight_mode`."""

    def __init__(self, config: AttentionConfig) -> None:
        self.config = config
        self._fixed = fixed_weights(config)

    @property
    def is_adaptive(self) -> bool:
        return self.config.weight_mode is WeightMode.ADAPTIVE

    def compute(self, cue_sets: Sequence[CueSet]) -> WeightVector:
        if not self.is_adaptive:
            return self._fixed
        weights = adaptive_weights(cue_sets, self.config)
        logger.debug(
            "Adaptive weights M:{:.2f} A:{:.2f} P:{:.2f} C:{:.2f} L:{:.2f}",
            weights.motion,
            weights.angular_velocity,
            weights.proximity,
            weights.color_contrast,
            weights.luminance_contrast,
        )
        return weights
