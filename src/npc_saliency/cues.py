"""Cue extraction for bottom-up saliency.

Each salient object carries five normalized cues, all clamped to [0, 1]:

- motion: translational speed through a divisive normalization
- angular_velocity: rotational speed through the same saturating response
- proximity: inverse distance, or apparent size over distance
- color_contrast: RGB distance between the object's average color and the background
- luminance_contrast: relative-luminance difference against the background

Cues are recomputed once per frame from the object's own history; nothing is
shared between objects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from loguru import logger

from .config import CUE_NAMES, AttentionConfig, ProximityMode
from .scene import SalientObject, Viewpoint

LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])
MAX_RGB_DISTANCE = math.sqrt(3.0)


@dataclass(frozen=True, slots=True)
class CueSet:
    motion: float = 0.0
    angular_velocity: float = 0.0
    proximity: float = 0.0
    color_contrast: float = 0.0
    luminance_contrast: float = 0.0

    def as_array(self, names: tuple[str, ...] = CUE_NAMES) -> np.ndarray:
        return np.array([getattr(self, name) for name in names], dtype=float)


def clip01(value: float) -> float:
    """Clamp a scalar into [0, 1]; NaN collapses to 0."""
    if not math.isfinite(value):
        return 1.0 if value == math.inf else 0.0
    return float(min(max(value, 0.0), 1.0))


def saturate(rate: float, sigma: float) -> float:
    """Divisive normalization rate / (rate + sigma), half-saturating at sigma."""
    return clip01(rate / (rate + sigma))


def compute_motion(position: np.ndarray, last_position: np.ndarray, dt: float, config: AttentionConfig) -> float:
    """Motion cue: speed = |Δp| / max(dt, ε), then speed / (speed + σ_motion)."""
    displacement = float(np.linalg.norm(position - last_position))
    speed = displacement / max(dt, config.time_epsilon)
    return saturate(speed, config.sigma_motion)


def quaternion_angle(rotation: np.ndarray, last_rotation: np.ndarray) -> float:
    """Angle in degrees of rotation ⊗ inverse(last_rotation).

    For unit quaternions the scalar part of the relative rotation equals the
    dot product of the two, so the angle is 2·acos(|q·q_last|).
    """
    dot = abs(float(np.dot(rotation, last_rotation)))
    return math.degrees(2.0 * math.acos(min(dot, 1.0)))


def compute_angular_velocity(
    rotation: np.ndarray, last_rotation: np.ndarray, dt: float, config: AttentionConfig
) -> float:
    angular_speed = quaternion_angle(rotation, last_rotation) / max(dt, config.time_epsilon)
    return saturate(angular_speed, config.sigma_angular)


def compute_proximity(obj: SalientObject, eye: Optional[Viewpoint], config: AttentionConfig) -> float:
    """Proximity cue relative to the eye; 0 when no viewpoint is available."""
    if eye is None:
        return 0.0

    distance = float(np.linalg.norm(obj.position - eye.position))
    if config.proximity_mode is ProximityMode.INVERSE_DISTANCE:
        return 1.0 - clip01(distance / config.max_distance)

    size = obj.size
    denominator = size + distance
    if denominator <= 0.0:
        return 0.0
    return clip01(size / denominator)


def average_color(obj: SalientObject) -> Optional[np.ndarray]:
    """Average surface RGB: texture mean if readable, else the material color."""
    if obj.texture is not None:
        pixels = obj.texture
        if pixels.ndim == 3 and pixels.shape[-1] in (3, 4) and pixels.size > 0:
            rgb = pixels[..., :3].reshape(-1, 3).astype(float)
            if np.issubdtype(pixels.dtype, np.integer):
                rgb = rgb / 255.0
            return np.clip(rgb.mean(axis=0), 0.0, 1.0)
        logger.debug(
            "Texture on {} has unsupported shape {}; using material color",
            obj.name,
            pixels.shape,
        )
    return obj.base_color


def relative_luminance(color: np.ndarray) -> float:
    return float(LUMINANCE_WEIGHTS @ color)


def compute_color_contrast(color: Optional[np.ndarray], background: np.ndarray) -> float:
    if color is None:
        return 0.0
    distance = float(np.linalg.norm(color - background))
    return clip01(distance / MAX_RGB_DISTANCE)


def compute_luminance_contrast(color: Optional[np.ndarray], background: np.ndarray) -> float:
    if color is None:
        return 0.0
    return clip01(abs(relative_luminance(color) - relative_luminance(background)))


def extract_cues(
    obj: SalientObject,
    timestamp: float,
    eye: Optional[Viewpoint],
    background: np.ndarray,
    config: AttentionConfig,
) -> CueSet:
    """Refresh an object's cues for the frame at `timestamp` and roll its history.

    The first observation of an object has no delta to measure, so motion and
    angular velocity start at 0.

    Args:
        obj: Object whose cues are recomputed in place.
        timestamp: Simulation clock for the current frame [s].
        eye: Reference viewpoint, or None when none is wired in.
        background: RGB background used for the contrast cues.
        config: Normalization constants and the proximity policy.

    Returns:
        The new CueSet, also stored on `obj.cues`.
    """
    if obj.last_timestamp is None:
        motion = 0.0
        angular = 0.0
    else:
        dt = timestamp - obj.last_timestamp
        motion = compute_motion(obj.position, obj.last_position, dt, config)
        angular = (
            compute_angular_velocity(obj.rotation, obj.last_rotation, dt, config)
            if config.use_angular_velocity
            else 0.0
        )

    color = average_color(obj)
    cues = CueSet(
        motion=motion,
        angular_velocity=angular,
        proximity=compute_proximity(obj, eye, config),
        color_contrast=compute_color_contrast(color, background),
        luminance_contrast=compute_luminance_contrast(color, background),
    )

    obj.last_position = obj.position.copy()
    obj.last_rotation = obj.rotation.copy()
    obj.last_timestamp = timestamp
    obj.cues = cues
    return cues
