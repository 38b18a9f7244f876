"""Synthetic street scene for headless attention runs.

The scene mimics a small city block seen from a standing NPC:
- pedestrian: walks back and forth across the view
- turnstile: spins in place with a dull color
- billboard: large, static, textured in saturated colors
- lamp_post: static, thin and nearly background gray
- far_drone: fast but beyond the attention range
- hidden_crate: white crate behind a wall (culled only by raycast gating)
- rear_car: moving behind the camera, outside the frustum

Example:
    >>> from npc_saliency.synthetic_scene import build_demo_scene
    >>>
    >>> scene = build_demo_scene()
    >>> scene.advance(0.5)
    >>> print([obj.name for obj in scene.population])

Note: this is an illustrative scene, not recorded engine data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .scene import Bounds, Camera, Population, SalientObject, quaternion_from_axis_angle

Pose = Tuple[np.ndarray, Optional[np.ndarray]]


@dataclass
class SyntheticScene:
    population: Population
    camera: Camera
    occluders: List[Bounds] = field(default_factory=list)
    motions: Dict[int, Callable[[float], Pose]] = field(default_factory=dict)

    def advance(self, t: float) -> None:
        """Move every scripted object to its pose at time `t`."""
        for obj in self.population:
            motion = self.motions.get(obj.object_id)
            if motion is None:
                continue
            position, rotation = motion(t)
            obj.move_to(position, rotation)

    @property
    def names(self) -> Dict[int, str]:
        return {obj.object_id: obj.name for obj in self.population}


def _billboard_texture() -> np.ndarray:
    texture = np.zeros((8, 8, 3), dtype=np.uint8)
    texture[::2] = (230, 30, 40)
    texture[1::2] = (250, 210, 20)
    return texture


def build_demo_scene() -> SyntheticScene:
    camera = Camera(position=(0.0, 1.6, 0.0), background_color=(0.5, 0.5, 0.5))

    pedestrian = SalientObject(position=(0.0, 0.9, 8.0), extents=(0.3, 0.9, 0.3), base_color=(0.2, 0.3, 0.8), name="pedestrian")
    turnstile = SalientObject(position=(-2.0, 1.0, 6.0), extents=(0.6, 0.6, 0.1), base_color=(0.55, 0.55, 0.5), name="turnstile")
    billboard = SalientObject(
        position=(4.0, 2.5, 14.0),
        extents=(1.5, 1.0, 0.1),
        base_color=(0.9, 0.2, 0.2),
        texture=_billboard_texture(),
        name="billboard",
    )
    lamp_post = SalientObject(position=(-1.0, 2.0, 4.0), extents=(0.1, 2.0, 0.1), base_color=(0.45, 0.45, 0.45), name="lamp_post")
    far_drone = SalientObject(position=(0.0, 5.0, 80.0), extents=(0.4, 0.1, 0.4), base_color=(1.0, 1.0, 0.0), name="far_drone")
    hidden_crate = SalientObject(position=(0.0, 0.5, 25.0), extents=(0.5, 0.5, 0.5), base_color=(1.0, 1.0, 1.0), name="hidden_crate")
    rear_car = SalientObject(position=(0.0, 0.7, -6.0), extents=(2.0, 0.7, 1.0), base_color=(0.9, 0.1, 0.1), name="rear_car")

    population = Population(
        [pedestrian, turnstile, billboard, lamp_post, far_drone, hidden_crate, rear_car]
    )
    wall = Bounds.from_center_extents(center=(0.0, 1.0, 20.0), extents=(4.0, 2.0, 0.2))

    motions: Dict[int, Callable[[float], Pose]] = {
        pedestrian.object_id: lambda t: (np.array([3.0 * math.sin(0.8 * t), 0.9, 8.0]), None),
        turnstile.object_id: lambda t: (
            np.array([-2.0, 1.0, 6.0]),
            quaternion_from_axis_angle((0.0, 1.0, 0.0), 120.0 * t),
        ),
        far_drone.object_id: lambda t: (np.array([10.0 * math.sin(2.0 * t), 5.0, 80.0]), None),
        rear_car.object_id: lambda t: (np.array([6.0 * math.sin(0.5 * t), 0.7, -6.0]), None),
    }
    return SyntheticScene(population=population, camera=camera, occluders=[wall], motions=motions)
