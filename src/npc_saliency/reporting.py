"""Reporting utilities for attention runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

import numpy as np
from tabulate import tabulate

from .selector import SaliencyResult


@dataclass(frozen=True)
class GazeMetrics:
    object_id: int
    name: str
    frames_attended: int
    share: float
    mean_score: float


def compute_gaze_metrics(
    results: Iterable[SaliencyResult], names: Mapping[int, str]
) -> tuple[list[GazeMetrics], int]:
    """Aggregate how often each object held the gaze.

    Returns:
        Per-object metrics ordered by object ID, and the number of frames
        that had no target.
    """
    results = list(results)
    total = len(results)
    winning_scores: dict[int, list[float]] = {object_id: [] for object_id in names}
    idle_frames = 0
    for result in results:
        if result.object_id is None:
            idle_frames += 1
            continue
        winning_scores.setdefault(result.object_id, []).append(result.score)

    metrics = []
    for object_id in sorted(winning_scores):
        scores = winning_scores[object_id]
        metrics.append(
            GazeMetrics(
                object_id=object_id,
                name=names.get(object_id, f"object-{object_id}"),
                frames_attended=len(scores),
                share=len(scores) / total if total else 0.0,
                mean_score=float(np.mean(scores)) if scores else 0.0,
            )
        )
    return metrics, idle_frames


def summarize_gaze_metrics(metrics: Iterable[GazeMetrics], idle_frames: int) -> str:
    rows = [
        (
            metric.object_id,
            metric.name,
            metric.frames_attended,
            f"{metric.share * 100.0:.1f}",
            f"{metric.mean_score:.4f}",
        )
        for metric in metrics
    ]
    table = tabulate(
        rows,
        headers=["ID", "Object", "Frames", "Gaze share [%]", "Mean score"],
        tablefmt="github",
        disable_numparse=True,
    )
    return table + "\n" + f"Frames without target: {idle_frames}"
