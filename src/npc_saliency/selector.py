"""Attention selection pipeline.

Once per frame the selector refreshes every object's cues, gates the
population through the visibility policy, derives the frame's weights from
the eligible objects, scores them and keeps the strict arg-max. The result
is published to an optional gaze actuator and mirrored to telemetry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

import numpy as np
from loguru import logger

from .config import AttentionConfig, WeightMode
from .cues import extract_cues
from .scene import Camera, Population, SalientObject, Viewpoint
from .scoring import compute_score
from .visibility import SceneVisibilityOracle, VisibilityGate, VisibilityOracle
from .weights import WeightPolicy, WeightVector

NO_TARGET_SCORE = -1.0


class GazeActuator(Protocol):
    def look_at(self, position: Optional[np.ndarray]) -> None:
        """Receive the current target position, or None when there is no target."""
        ...


class FrameSink(Protocol):
    def write_frame(
        self,
        frame: int,
        objects: Sequence[SalientObject],
        best_id: Optional[int],
        weights: WeightVector,
    ) -> None:
        ...


@dataclass(frozen=True, slots=True)
class SaliencyResult:
    """Outcome of one selection pass.

    Attributes:
        object_id: Handle of the winning object, or None when nothing qualified.
        score: Winning score, or -1.0 when there is no target.
        frame: Frame index the result was computed for.
        position: Winner's position at selection time. Not part of equality;
            results compare by winner, score and frame.
    """

    object_id: Optional[int]
    score: float
    frame: int
    position: Optional[np.ndarray] = field(default=None, compare=False)

    @property
    def has_target(self) -> bool:
        return self.object_id is not None


@dataclass(slots=True)
class Selection:
    best: Optional[SalientObject]
    best_score: float
    weights: WeightVector
    scores: dict[int, float] = field(default_factory=dict)


def select_most_salient(
    candidates: Sequence[SalientObject],
    policy: WeightPolicy,
    config: AttentionConfig,
) -> Selection:
    """Score eligible candidates and keep the first strict maximum.

    Weights are computed before any score so that adaptive weighting sees the
    whole eligible population. Ties keep the earlier candidate.
    """
    weights = policy.compute([obj.cues for obj in candidates])
    average = config.average_fixed_scores and config.weight_mode is WeightMode.FIXED

    best: Optional[SalientObject] = None
    best_score = NO_TARGET_SCORE
    scores: dict[int, float] = {}
    for obj in candidates:
        score = compute_score(obj.cues, weights, config.active_cues, average=average)
        scores[obj.object_id] = score
        if score > best_score:
            best_score = score
            best = obj
    return Selection(best=best, best_score=best_score, weights=weights, scores=scores)


class AttentionSelector:
    """Frame-driven selector of the single most salient visible object.

    Attributes:
        population: Registry of candidate objects, iterated in insertion order.
        config: Pipeline configuration.
        camera: Camera providing frustum and background color.
        eye: Reference viewpoint; falls back to the camera's viewpoint.
        gate: Visibility gate built from the oracle and config.
        policy: Weight policy for the configured mode.
        sink: Optional telemetry sink receiving every frame.
        actuator: Optional gaze actuator receiving the target position.
    """

    def __init__(
        self,
        population: Population,
        config: AttentionConfig | None = None,
        camera: Camera | None = None,
        eye: Viewpoint | None = None,
        oracle: VisibilityOracle | None = None,
        sink: FrameSink | None = None,
        actuator: GazeActuator | None = None,
    ) -> None:
        if population is None:
            raise ValueError(
                "AttentionSelector requires a population source.\n"
                "Pass a Population (it may be empty) to register candidate objects."
            )
        self.population = population
        self.config = config or AttentionConfig()
        self.camera = camera
        self._eye = eye
        self.oracle = oracle or SceneVisibilityOracle(camera, population)
        self.gate = VisibilityGate(self.config, self.oracle)
        self.policy = WeightPolicy(self.config)
        self.sink = sink
        self.actuator = actuator

        self.frame = 0
        self.clock = 0.0
        self.last_weights: WeightVector = self.policy.compute([])
        self.last_scores: dict[int, float] = {}
        self._result = SaliencyResult(object_id=None, score=NO_TARGET_SCORE, frame=0)

    @property
    def eye(self) -> Optional[Viewpoint]:
        if self._eye is not None:
            return self._eye
        return self.camera.viewpoint if self.camera is not None else None

    @eye.setter
    def eye(self, value: Optional[Viewpoint]) -> None:
        self._eye = value

    @property
    def background(self) -> np.ndarray:
        if self.camera is not None:
            return self.camera.background_color
        return self.config.background

    @property
    def result(self) -> SaliencyResult:
        return self._result

    def _refresh(self, objects: Sequence[SalientObject], eye: Optional[Viewpoint]) -> list[SalientObject]:
        """Extract cues and gate; a failing object is skipped for this frame only."""
        eligible = []
        for obj in objects:
            try:
                extract_cues(obj, self.clock, eye, self.background, self.config)
                if self.gate.is_eligible(obj, eye):
                    eligible.append(obj)
            except (ValueError, ArithmeticError, AttributeError, TypeError) as exc:
                logger.warning("Skipping {} on frame {}: {}", obj.name, self.frame, exc)
        return eligible

    def step(self, delta_time: float) -> SaliencyResult:
        """Run one full frame: extract, gate, weight, score, select, publish."""
        self.frame += 1
        self.clock += max(float(delta_time), 0.0)

        objects = list(self.population)
        eye = self.eye
        eligible = self._refresh(objects, eye)
        selection = select_most_salient(eligible, self.policy, self.config)

        best = selection.best
        self._result = SaliencyResult(
            object_id=best.object_id if best is not None else None,
            score=selection.best_score,
            frame=self.frame,
            position=best.position.copy() if best is not None else None,
        )
        self.last_weights = selection.weights
        self.last_scores = selection.scores

        if self.actuator is not None:
            self.actuator.look_at(self._result.position)
        if self.sink is not None:
            try:
                self.sink.write_frame(self.frame, objects, self._result.object_id, selection.weights)
            except Exception as exc:
                logger.error("Telemetry sink failed on frame {}: {}", self.frame, exc)
        return self._result

    def get_current_target(self) -> tuple[Optional[SalientObject], Optional[np.ndarray], float]:
        """Resolve the published handle; a removed object resolves to no target."""
        obj = self.population.get(self._result.object_id)
        if obj is None:
            return None, None, NO_TARGET_SCORE
        return obj, obj.position.copy(), self._result.score
