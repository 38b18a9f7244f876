"""Scene data structures: salient objects, bounds, camera and population."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Iterator, Optional

import numpy as np

# Single allocation-time counter; IDs are never reused.
_OBJECT_IDS = itertools.count()

IDENTITY_ROTATION = np.array([1.0, 0.0, 0.0, 0.0])


def _as_vector(value, name: str, size: int = 3) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (size,):
        raise ValueError(
            f"{name} must be a vector of length {size}, got shape {arr.shape}.\n"
            f"Pass a sequence such as (x, y, z) or a numpy array."
        )
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite values: {arr}.")
    return arr.copy()


def _normalize(vector: np.ndarray, name: str) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        raise ValueError(f"{name} must be non-zero.")
    return vector / norm


def quaternion_from_axis_angle(axis, degrees: float) -> np.ndarray:
    """Build a unit quaternion (w, x, y, z) rotating `degrees` about `axis`."""
    axis = _normalize(_as_vector(axis, "axis"), "axis")
    half = np.radians(degrees) / 2.0
    return np.concatenate(([np.cos(half)], np.sin(half) * axis))


def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a ⊗ b for (w, x, y, z) quaternions."""
    w1, x1, y1, z1 = a
    w2, x2, y2, z2 = b
    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ]
    )


def quaternion_inverse(q: np.ndarray) -> np.ndarray:
    """Inverse of a unit quaternion (its conjugate)."""
    return np.array([q[0], -q[1], -q[2], -q[3]])


def rotation_matrix(q: np.ndarray) -> np.ndarray:
    w, x, y, z = q
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ]
    )


@dataclass(frozen=True, slots=True, eq=False)
class Bounds:
    """Axis-aligned bounding box in world space.

    Compared by identity; use ``np.allclose`` on the corners for geometry.
    """

    minimum: np.ndarray
    maximum: np.ndarray

    @classmethod
    def from_center_extents(cls, center, extents) -> "Bounds":
        center = _as_vector(center, "center")
        extents = np.abs(_as_vector(extents, "extents"))
        return cls(minimum=center - extents, maximum=center + extents)

    @property
    def center(self) -> np.ndarray:
        return (self.minimum + self.maximum) / 2.0

    @property
    def size(self) -> np.ndarray:
        return self.maximum - self.minimum

    def contains(self, point) -> bool:
        point = np.asarray(point, dtype=float)
        return bool(np.all(point >= self.minimum) and np.all(point <= self.maximum))


@dataclass(slots=True)
class Viewpoint:
    """Reference transform used for proximity, range and raycast tests."""

    position: np.ndarray
    forward: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))

    def __post_init__(self) -> None:
        self.position = _as_vector(self.position, "position")
        self.forward = _normalize(_as_vector(self.forward, "forward"), "forward")


@dataclass(slots=True)
class Camera:
    """Perspective camera providing the view frustum and the clear color.

    Attributes:
        position: Camera position in world space.
        forward: Viewing direction.
        up: Approximate up vector (re-orthogonalized against forward).
        fov_deg: Vertical field of view in degrees.
        aspect: Width / height ratio.
        near, far: Clip plane distances.
        background_color: RGB clear color in [0, 1], used as the contrast reference.
    """

    position: np.ndarray
    forward: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    fov_deg: float = 60.0
    aspect: float = 16.0 / 9.0
    near: float = 0.3
    far: float = 1000.0
    background_color: np.ndarray = field(default_factory=lambda: np.array([0.5, 0.5, 0.5]))

    def __post_init__(self) -> None:
        self.position = _as_vector(self.position, "position")
        self.forward = _normalize(_as_vector(self.forward, "forward"), "forward")
        self.up = _normalize(_as_vector(self.up, "up"), "up")
        self.background_color = np.clip(_as_vector(self.background_color, "background_color"), 0.0, 1.0)

        if np.linalg.norm(np.cross(self.up, self.forward)) < 1.0e-9:
            raise ValueError("Camera up vector must not be parallel to forward.")
        if not (0.0 < self.fov_deg < 180.0):
            raise ValueError(f"fov_deg must lie in (0, 180), got {self.fov_deg}.")
        if self.aspect <= 0:
            raise ValueError(f"aspect must be positive, got {self.aspect}.")
        if not (0.0 < self.near < self.far):
            raise ValueError(
                f"Clip planes must satisfy 0 < near < far, got near={self.near}, far={self.far}."
            )

    @property
    def viewpoint(self) -> Viewpoint:
        return Viewpoint(position=self.position, forward=self.forward)


@dataclass(eq=False)
class SalientObject:
    """A scene object that can be attended to.

    Holds the object's pose, appearance and the small per-object history
    needed for the motion and angular cues. The `object_id` is assigned once
    at construction and never reused, even after the object is removed from
    its population.

    Attributes:
        position: World position (bounding box centre).
        rotation: Unit quaternion (w, x, y, z).
        extents: Half-size of the local bounding box.
        base_color: Renderer material RGB in [0, 1]; None means no renderer.
        texture: Optional source image (H x W x 3/4) used for the average color.
        name: Human readable label for reports.
    """

    position: np.ndarray
    rotation: np.ndarray = field(default_factory=lambda: IDENTITY_ROTATION.copy())
    extents: np.ndarray = field(default_factory=lambda: np.array([0.5, 0.5, 0.5]))
    base_color: Optional[np.ndarray] = None
    texture: Optional[np.ndarray] = None
    name: str = ""

    object_id: int = field(init=False)
    last_position: np.ndarray = field(init=False, repr=False)
    last_rotation: np.ndarray = field(init=False, repr=False)
    last_timestamp: Optional[float] = field(init=False, default=None, repr=False)
    cues: "CueSet" = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Imported lazily: cues.py depends on this module.
        from .cues import CueSet

        self.position = _as_vector(self.position, "position")
        self.rotation = _normalize(_as_vector(self.rotation, "rotation", size=4), "rotation")
        self.extents = np.abs(_as_vector(self.extents, "extents"))
        if self.base_color is not None:
            self.base_color = np.clip(_as_vector(self.base_color, "base_color"), 0.0, 1.0)
        if self.texture is not None:
            self.texture = np.asarray(self.texture)

        self.object_id = next(_OBJECT_IDS)
        if not self.name:
            self.name = f"object-{self.object_id}"
        self.last_position = self.position.copy()
        self.last_rotation = self.rotation.copy()
        self.cues = CueSet()

    @property
    def has_renderer(self) -> bool:
        return self.base_color is not None

    @property
    def world_extents(self) -> np.ndarray:
        """Half-size of the world-space AABB enclosing the rotated box."""
        return np.abs(rotation_matrix(self.rotation)) @ self.extents

    @property
    def bounds(self) -> Bounds:
        half = self.world_extents
        return Bounds(minimum=self.position - half, maximum=self.position + half)

    @property
    def size(self) -> float:
        """Largest edge of the world-space bounding box."""
        return float(np.max(2.0 * self.world_extents))

    def move_to(self, position, rotation=None) -> None:
        """Set a new pose; history is left for the next cue extraction."""
        self.position = _as_vector(position, "position")
        if rotation is not None:
            self.rotation = _normalize(_as_vector(rotation, "rotation", size=4), "rotation")


class Population:
    """Insertion-ordered registry of salient objects keyed by object ID."""

    def __init__(self, objects=()) -> None:
        self._objects: dict[int, SalientObject] = {}
        for obj in objects:
            self.add(obj)

    def add(self, obj: SalientObject) -> int:
        if obj.object_id in self._objects:
            raise ValueError(f"Object {obj.object_id} is already registered.")
        self._objects[obj.object_id] = obj
        return obj.object_id

    def remove(self, object_id: int) -> Optional[SalientObject]:
        return self._objects.pop(object_id, None)

    def get(self, object_id: Optional[int]) -> Optional[SalientObject]:
        """Resolve a handle; unknown or removed IDs resolve to None."""
        if object_id is None:
            return None
        return self._objects.get(object_id)

    def __iter__(self) -> Iterator[SalientObject]:
        return iter(list(self._objects.values()))

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects
