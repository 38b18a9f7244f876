"""Visibility gating: frustum/raycast occlusion plus attention range."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Protocol, Sequence

import numpy as np

from .config import AttentionConfig, VisibilityMode
from .scene import Bounds, Camera, SalientObject, Viewpoint


class VisibilityOracle(Protocol):
    """Rendering-side visibility primitives the gate relies on."""

    def is_visible(self, obj: SalientObject, viewpoint: Viewpoint) -> bool:
        ...

    def frustum_contains(self, bounds: Bounds) -> bool:
        ...


def frustum_planes(camera: Camera) -> np.ndarray:
    """Return the six frustum planes as rows (nx, ny, nz, d).

    Normals point into the frustum, so a point p is inside a plane when
    n·p + d >= 0. Order: left, right, bottom, top, near, far.
    """
    forward = camera.forward
    right = np.cross(camera.up, forward)
    right /= np.linalg.norm(right)
    up = np.cross(forward, right)

    half_v = math.tan(math.radians(camera.fov_deg) / 2.0)
    half_h = half_v * camera.aspect

    side_normals = [
        right + half_h * forward,
        -right + half_h * forward,
        up + half_v * forward,
        -up + half_v * forward,
    ]
    planes = []
    for normal in side_normals:
        normal = normal / np.linalg.norm(normal)
        planes.append(np.append(normal, -float(normal @ camera.position)))

    near_point = camera.position + forward * camera.near
    far_point = camera.position + forward * camera.far
    planes.append(np.append(forward, -float(forward @ near_point)))
    planes.append(np.append(-forward, float(forward @ far_point)))
    return np.vstack(planes)


def aabb_intersects_frustum(planes: np.ndarray, bounds: Bounds) -> bool:
    """Positive-vertex test: the box is culled only if fully behind one plane."""
    normals = planes[:, :3]
    positive = np.where(normals >= 0.0, bounds.maximum, bounds.minimum)
    distances = np.einsum("ij,ij->i", normals, positive) + planes[:, 3]
    return bool(np.all(distances >= 0.0))


def ray_aabb_entry(origin: np.ndarray, direction: np.ndarray, bounds: Bounds) -> Optional[float]:
    """Slab test; returns the entry parameter t >= 0 along `direction`, or None."""
    with np.errstate(divide="ignore", invalid="ignore"):
        inverse = 1.0 / direction
        t1 = (bounds.minimum - origin) * inverse
        t2 = (bounds.maximum - origin) * inverse
    t_near = float(np.nanmax(np.fmin(t1, t2)))
    t_far = float(np.nanmin(np.fmax(t1, t2)))
    if math.isnan(t_near) or math.isnan(t_far) or t_far < max(t_near, 0.0):
        return None
    return max(t_near, 0.0)


class SceneVisibilityOracle:
    """Geometric oracle: camera frustum culling and single-ray occlusion.

    The ray is cast from the viewpoint to the target's centre against every
    other object in the population plus any static occluders. Volumes that
    contain the ray origin are ignored, as an engine raycast would.
    """

    def __init__(
        self,
        camera: Optional[Camera],
        population: Iterable[SalientObject] = (),
        occluders: Sequence[Bounds] = (),
    ) -> None:
        self.camera = camera
        self.population = population
        self.occluders = list(occluders)

    def frustum_contains(self, bounds: Bounds) -> bool:
        if self.camera is None:
            return False
        return aabb_intersects_frustum(frustum_planes(self.camera), bounds)

    def is_visible(self, obj: SalientObject, viewpoint: Viewpoint) -> bool:
        origin = viewpoint.position
        direction = obj.position - origin
        if not np.any(direction):
            return True

        target_hit = ray_aabb_entry(origin, direction, obj.bounds)
        if target_hit is None:
            return False

        blockers = [other.bounds for other in self.population if other is not obj]
        blockers.extend(self.occluders)
        for bounds in blockers:
            if bounds.contains(origin):
                continue
            hit = ray_aabb_entry(origin, direction, bounds)
            if hit is not None and hit < target_hit:
                return False
        return True


class VisibilityGate:
    """Decides per object per frame whether it may be scored.

    Exactly one occlusion policy is active, chosen by `config.visibility_mode`;
    both are combined with the attention-range check.
    """

    def __init__(self, config: AttentionConfig, oracle: VisibilityOracle) -> None:
        self.config = config
        self.oracle = oracle

    def in_range(self, obj: SalientObject, eye: Viewpoint) -> bool:
        distance = float(np.linalg.norm(obj.position - eye.position))
        return distance <= self.config.attention_range

    def is_eligible(self, obj: SalientObject, eye: Optional[Viewpoint]) -> bool:
        if eye is None or not self.in_range(obj, eye):
            return False
        if self.config.visibility_mode is VisibilityMode.RAYCAST:
            return self.oracle.is_visible(obj, eye)
        return obj.has_renderer and self.oracle.frustum_contains(obj.bounds)
