"""Simulation routines driving the attention pipeline over many frames."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from .config import CUE_NAMES, AttentionConfig
from .reporting import GazeMetrics, compute_gaze_metrics, summarize_gaze_metrics
from .scene import Viewpoint
from .selector import AttentionSelector, SaliencyResult
from .synthetic_scene import SyntheticScene, build_demo_scene
from .telemetry import CsvTelemetrySink
from .visibility import SceneVisibilityOracle


def _get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    return int(os.environ.get("NPC_SALIENCY_VERBOSITY", "1"))


class RecordingActuator:
    """Gaze actuator that only records the positions it is sent."""

    def __init__(self) -> None:
        self.positions: List[Optional[np.ndarray]] = []

    def look_at(self, position: Optional[np.ndarray]) -> None:
        self.positions.append(None if position is None else position.copy())


@dataclass(slots=True)
class SimulationArtifacts:
    config: AttentionConfig
    results: List[SaliencyResult]
    weight_history: np.ndarray
    metrics: List[GazeMetrics]
    idle_frames: int
    table: str
    names: Dict[int, str]
    object_log: Path
    weight_log: Path
    plots: List[Path]


def _plot_weight_history(weight_history: np.ndarray, delta_time: float, out_path: Path) -> None:
    times = np.arange(1, weight_history.shape[0] + 1) * delta_time
    plt.figure(figsize=(7.5, 5.0))
    for idx, name in enumerate(CUE_NAMES):
        plt.plot(times, weight_history[:, idx], "-", label=name, linewidth=2.0)
    plt.xlabel("Time [s]")
    plt.ylabel("Weight")
    plt.title("Cue weights per frame")
    plt.grid(True, alpha=0.3)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()


def _plot_target_timeline(
    results: List[SaliencyResult], names: Dict[int, str], delta_time: float, out_path: Path
) -> None:
    ordered_ids = sorted(names)
    lanes = {object_id: lane for lane, object_id in enumerate(ordered_ids)}
    times = np.array([result.frame for result in results]) * delta_time
    lane_values = np.array(
        [lanes.get(result.object_id, -1) if result.has_target else -1 for result in results]
    )
    scores = np.array([max(result.score, 0.0) for result in results])

    fig, (ax_target, ax_score) = plt.subplots(2, 1, figsize=(7.5, 6.0), sharex=True)
    ax_target.step(times, lane_values, where="post", linewidth=2.0)
    ax_target.set_yticks([-1] + list(range(len(ordered_ids))))
    ax_target.set_yticklabels(["(none)"] + [names[object_id] for object_id in ordered_ids])
    ax_target.set_title("Gaze target")
    ax_target.grid(True, alpha=0.3)
    ax_score.plot(times, scores, "-", linewidth=2.0)
    ax_score.set_xlabel("Time [s]")
    ax_score.set_ylabel("Winning score")
    ax_score.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)


def run_synthetic_simulation(
    output_dir: Path,
    config: AttentionConfig | None = None,
    frames: int = 300,
    delta_time: float = 1.0 / 30.0,
    scene: SyntheticScene | None = None,
    make_plots: bool = True,
) -> SimulationArtifacts:
    """Step the selector over a scripted scene and write logs, plots and a summary.

    Args:
        output_dir: Directory receiving the CSV logs and plots.
        config: Pipeline configuration; defaults to AttentionConfig().
        frames: Number of frames to simulate.
        delta_time: Frame duration [s].
        scene: Scene to animate; defaults to build_demo_scene().
        make_plots: Render the weight-history and gaze-timeline figures.

    Returns:
        SimulationArtifacts with the per-frame results and summary table.
    """
    if frames <= 0:
        raise ValueError(f"frames must be positive, got {frames}.")
    if delta_time <= 0:
        raise ValueError(f"delta_time must be positive, got {delta_time}.")

    config = config or AttentionConfig()
    scene = scene or build_demo_scene()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    object_log = output_dir / "SaliencyLog.csv"
    weight_log = output_dir / "SaliencyWeightsLog.csv"
    sink = CsvTelemetrySink(object_log, weight_log, include_angular=config.use_angular_velocity)
    oracle = SceneVisibilityOracle(scene.camera, scene.population, scene.occluders)
    selector = AttentionSelector(
        scene.population,
        config=config,
        camera=scene.camera,
        eye=Viewpoint(scene.camera.position, scene.camera.forward),
        oracle=oracle,
        sink=sink,
        actuator=RecordingActuator(),
    )

    results: List[SaliencyResult] = []
    weight_rows: List[np.ndarray] = []
    frame_iter = tqdm(
        range(frames),
        total=frames,
        desc="Simulating frames",
        disable=_get_verbosity() == 0,
        leave=False,
    )
    for index in frame_iter:
        scene.advance(index * delta_time)
        results.append(selector.step(delta_time))
        weight_rows.append(selector.last_weights.as_array())

    weight_history = np.vstack(weight_rows)
    names = scene.names
    metrics, idle_frames = compute_gaze_metrics(results, names)
    table = summarize_gaze_metrics(metrics, idle_frames)

    plots: List[Path] = []
    if make_plots:
        weights_png = output_dir / "weight_history.png"
        timeline_png = output_dir / "gaze_timeline.png"
        _plot_weight_history(weight_history, delta_time, weights_png)
        _plot_target_timeline(results, names, delta_time, timeline_png)
        plots.extend([weights_png, timeline_png])

    return SimulationArtifacts(
        config=config,
        results=results,
        weight_history=weight_history,
        metrics=metrics,
        idle_frames=idle_frames,
        table=table,
        names=names,
        object_log=object_log,
        weight_log=weight_log,
        plots=plots,
    )
