"""CSV telemetry for saliency frames.

Two append-only logs are written:

- object log: one row per object per frame with its pose, cues and whether it
  was the selected target
- weight log: one row per frame with the weight vector in force

Positions are written with 2 decimals and cues/weights with 4. A header row
is written only when the file is new or empty; an existing file whose header
does not match the sink's column layout is left untouched. Write failures
are logged and never interrupt the frame.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
from loguru import logger

from .scene import SalientObject
from .weights import WeightVector

OBJECT_COLUMNS = [
    "Frame",
    "ObjectID",
    "PosX",
    "PosY",
    "PosZ",
    "Motion",
    "AngularVelocity",
    "Proximity",
    "Color",
    "Luminance",
    "IsBest",
]
WEIGHT_COLUMNS = ["Frame", "WeightM", "WeightA", "WeightP", "WeightC", "WeightL"]


def object_row(frame: int, obj: SalientObject, is_best: bool, include_angular: bool = True) -> list[str]:
    cues = obj.cues
    x, y, z = obj.position
    row = [
        str(frame),
        str(obj.object_id),
        f"{x:.2f}",
        f"{y:.2f}",
        f"{z:.2f}",
        f"{cues.motion:.4f}",
    ]
    if include_angular:
        row.append(f"{cues.angular_velocity:.4f}")
    row.extend(
        [
            f"{cues.proximity:.4f}",
            f"{cues.color_contrast:.4f}",
            f"{cues.luminance_contrast:.4f}",
            "1" if is_best else "0",
        ]
    )
    return row


def weight_row(frame: int, weights: WeightVector) -> list[str]:
    return [
        str(frame),
        f"{weights.motion:.4f}",
        f"{weights.angular_velocity:.4f}",
        f"{weights.proximity:.4f}",
        f"{weights.color_contrast:.4f}",
        f"{weights.luminance_contrast:.4f}",
    ]


class CsvTelemetrySink:
    """Appends per-object and per-frame weight records to CSV files.

    Args:
        object_log: Path of the per-object log.
        weight_log: Optional path of the weight log; None disables it.
        include_angular: Write the AngularVelocity column in the object log.
    """

    def __init__(
        self,
        object_log: Path | str,
        weight_log: Path | str | None = None,
        include_angular: bool = True,
    ) -> None:
        self.object_log = Path(object_log)
        self.weight_log = Path(weight_log) if weight_log is not None else None
        self.include_angular = include_angular
        self.failures = 0

    @property
    def object_columns(self) -> list[str]:
        if self.include_angular:
            return OBJECT_COLUMNS
        return [col for col in OBJECT_COLUMNS if col != "AngularVelocity"]

    def _append(self, path: Path, rows: list[list[str]], columns: list[str]) -> bool:
        try:
            has_header = path.exists() and path.stat().st_size > 0
            if has_header:
                existing = list(pd.read_csv(path, nrows=0).columns)
                if existing != columns:
                    self.failures += 1
                    logger.error(
                        "Telemetry log {} has columns {}, refusing to append rows with {}",
                        path,
                        existing,
                        columns,
                    )
                    return False
            frame = pd.DataFrame(rows, columns=columns)
            frame.to_csv(path, mode="a", header=not has_header, index=False)
        except OSError as exc:
            self.failures += 1
            logger.error("Telemetry write to {} failed: {}", path, exc)
            return False
        return True

    def write_frame(
        self,
        frame: int,
        objects: Sequence[SalientObject],
        best_id: Optional[int],
        weights: WeightVector,
    ) -> None:
        rows = [
            object_row(frame, obj, obj.object_id == best_id, self.include_angular)
            for obj in objects
        ]
        if rows:
            self._append(self.object_log, rows, self.object_columns)
        if self.weight_log is not None:
            self._append(self.weight_log, [weight_row(frame, weights)], WEIGHT_COLUMNS)


def load_object_log(path: Path | str) -> pd.DataFrame:
    """Read an object log back, one row per object per frame."""
    df = pd.read_csv(path)
    df["IsBest"] = df["IsBest"].astype(bool)
    return df


def load_weight_log(path: Path | str) -> pd.DataFrame:
    return pd.read_csv(path).set_index("Frame")
