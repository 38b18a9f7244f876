"""Bottom-up visual attention for non-player characters.

Each frame, every salient object in the scene is scored from five normalized
cues (motion, angular velocity, proximity, color contrast and luminance
contrast). Objects outside the view or beyond the attention range are gated
out, the remaining cues are combined with fixed or adaptive weights, and the
single most salient object becomes the NPC's gaze target.

Main Components:
    - AttentionConfig: Modes and tunable constants
    - SalientObject / Population: Scene objects and their registry
    - extract_cues: Per-object cue computation
    - VisibilityGate: Frustum or raycast gating plus attention range
    - WeightPolicy: Fixed or percentile-spread adaptive weights
    - compute_score: Weighted, clamped cue combination
    - AttentionSelector: Per-frame orchestration and target selection
    - CsvTelemetrySink: Append-only CSV logs of cues and weights

Quick Start:
    >>> from npc_saliency import AttentionSelector, Camera, Population, SalientObject
    >>>
    >>> population = Population([SalientObject(position=(0, 0, 5), base_color=(1, 0, 0))])
    >>> selector = AttentionSelector(population, camera=Camera(position=(0, 0, 0)))
    >>> result = selector.step(1 / 30)
    >>> print(result.object_id, f"{result.score:.3f}")
"""

from .config import AttentionConfig, ProximityMode, VisibilityMode, WeightMode
from .cues import CueSet, extract_cues
from .scene import Bounds, Camera, Population, SalientObject, Viewpoint
from .scoring import compute_score
from .selector import AttentionSelector, SaliencyResult
from .telemetry import CsvTelemetrySink
from .visibility import SceneVisibilityOracle, VisibilityGate
from .weights import WeightPolicy, WeightVector, compute_spread

__all__ = [
    "AttentionConfig",
    "ProximityMode",
    "VisibilityMode",
    "WeightMode",
    "CueSet",
    "extract_cues",
    "Bounds",
    "Camera",
    "Population",
    "SalientObject",
    "Viewpoint",
    "compute_score",
    "AttentionSelector",
    "SaliencyResult",
    "CsvTelemetrySink",
    "SceneVisibilityOracle",
    "VisibilityGate",
    "WeightPolicy",
    "WeightVector",
    "compute_spread",
]
