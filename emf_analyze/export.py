"""CSV/JSON export of derived views."""

from __future__ import annotations

import csv
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterable, Mapping

from emf_analyze.grid import CellKey, GridCell, sorted_cells
from emf_analyze.live import IntensityZone, LiveView
from emf_analyze.models import WeightedPoint


def write_weighted_points_csv(points: Iterable[WeightedPoint], out_path: str | Path) -> int:
    """Write the heat point cloud. Returns the number of rows written."""

    n = 0
    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["latitude", "longitude", "weight"])
        w.writeheader()
        for pt in points:
            w.writerow({"latitude": pt.latitude, "longitude": pt.longitude, "weight": f"{pt.weight:.4f}"})
            n += 1
    return n


def cell_to_dict(cell: GridCell) -> dict[str, Any]:
    (min_lat, min_lon), (max_lat, max_lon) = cell.rectangle
    return {
        "row": cell.row,
        "col": cell.col,
        "min_lat": min_lat,
        "min_lon": min_lon,
        "max_lat": max_lat,
        "max_lon": max_lon,
        "average_weight": round(cell.average_weight, 4),
        "sample_count": cell.sample_count,
        "band": cell.band,
        "colour": cell.colour,
    }


def write_grid_cells_csv(grid: Mapping[CellKey, GridCell], out_path: str | Path) -> int:
    """Write one row per non-empty cell, ordered by (row, col)."""

    cells = sorted_cells(grid)
    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=[
                "row",
                "col",
                "min_lat",
                "min_lon",
                "max_lat",
                "max_lon",
                "average_weight",
                "sample_count",
                "band",
                "colour",
            ],
        )
        w.writeheader()
        for cell in cells:
            w.writerow(cell_to_dict(cell))
    return len(cells)


def write_zones_csv(zones: Iterable[IntensityZone], out_path: str | Path) -> int:
    n = 0
    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=["seconds", "latitude", "longitude", "magnitude", "radius_m", "band", "colour"],
        )
        w.writeheader()
        for z in zones:
            w.writerow(
                {
                    "seconds": z.seconds,
                    "latitude": z.latitude,
                    "longitude": z.longitude,
                    "magnitude": f"{z.magnitude:.1f}",
                    "radius_m": round(z.radius_m),
                    "band": z.band,
                    "colour": z.colour,
                }
            )
            n += 1
    return n


def live_view_to_dict(view: LiveView) -> dict[str, Any]:
    """JSON-ready representation of a live view."""

    latest = view.latest_heart_rate
    hr = view.heart_rate_summary
    return {
        "session_id": view.session_id,
        "path": [list(c) for c in view.path],
        "zones": [asdict(z) for z in view.zones],
        "weather_markers": [asdict(m) for m in view.weather_markers],
        "latest_bpm": latest.bpm if latest is not None else None,
        "heart_rate_readings": len(view.heart_rate),
        "heart_rate_summary": asdict(hr) if hr is not None else None,
        "location_count": view.location_count,
        "filtered_location_count": view.filtered_location_count,
        "field_total": view.field_total,
        "field_shown": view.field_shown,
        "field_mapped": view.field_mapped,
        "mapped_percent": round(view.mapped_percent, 1),
        "bounds": view.bounds.as_bounds() if view.bounds is not None else None,
        "center": list(view.bounds.center) if view.bounds is not None else None,
    }


def grid_to_dict(grid: Mapping[CellKey, GridCell]) -> list[dict[str, Any]]:
    return [cell_to_dict(c) for c in sorted_cells(grid)]
