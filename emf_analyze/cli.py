"""Command-line interface for emf_analyze.

Run:
    python -m emf_analyze sessions --snapshot sample_data/snapshot.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from emf_analyze.aggregate import reduce_tree
from emf_analyze.export import (
    grid_to_dict,
    live_view_to_dict,
    write_grid_cells_csv,
    write_weighted_points_csv,
    write_zones_csv,
)
from emf_analyze.geo import bounding_box
from emf_analyze.grid import aggregate_grid, aggregate_grid_parallel
from emf_analyze.inspect import inspect_session
from emf_analyze.live import build_live_view
from emf_analyze.models import (
    DEFAULT_TZ,
    GRID_CELL_DEG,
    MAX_DISPLAY_POINTS,
    TIME_TOLERANCE_SECONDS,
    FusionParams,
)
from emf_analyze.records import find_session, list_sessions, load_snapshot
from emf_analyze.timeutils import format_local


def _params(args: argparse.Namespace) -> FusionParams:
    return FusionParams(
        tolerance_seconds=args.tolerance_seconds,
        max_display_points=args.max_display,
        cell_size_deg=getattr(args, "cell_size", GRID_CELL_DEG),
        tz_name=args.tz,
    )


def _cmd_sessions(args: argparse.Namespace) -> int:
    tree = load_snapshot(args.snapshot)
    metas = list_sessions(tree)

    if args.json:
        print(json.dumps([asdict(m) for m in metas], ensure_ascii=False, indent=2))
        return 0

    print(f"### 会话（共 {len(metas)} 个，按时间倒序）")
    for m in metas:
        when = format_local(m.timestamp, args.tz) if m.timestamp else "-"
        total = m.total_samples if m.total_samples is not None else "-"
        print(f"{m.session_id}  user={m.user_id}  time={when}  status={m.status or '-'}  samples={total}")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    session = find_session(load_snapshot(args.snapshot), args.session)
    res = inspect_session(session)

    print("### 记录数")
    print(
        f"locations={res.locations}, magnetometer={res.field_samples}, "
        f"weather={res.weather}, heart_rate={res.heart_rate}"
    )
    print()

    if res.min_seconds is not None and res.max_seconds is not None:
        print("### 会话时间范围（秒）")
        print(f"start={res.min_seconds:.1f}, end={res.max_seconds:.1f}")
        print()

    for title, delta in (("GPS", res.location_delta), ("磁力计", res.field_delta)):
        if delta is not None:
            print(f"### {title}采样间隔（秒）")
            print(
                f"count={delta.count}, min={delta.min_s:.3f}, median={delta.median_s:.3f}, "
                f"p95={delta.p95_s:.3f}, max={delta.max_s:.3f}"
            )
            print()

    if res.bounds is not None:
        b = res.bounds
        print("### 经纬度范围")
        print(f"lat=[{b.min_lat}, {b.max_lat}], lon=[{b.min_lon}, {b.max_lon}]")
        print(f"轨迹长度≈{res.path_length_m:.0f} m")
        print()

    print("### 重复时间戳（GPS seconds 重复）")
    print(res.duplicates_location_seconds)

    if args.json:
        print(json.dumps(asdict(res), ensure_ascii=False, indent=2))
    return 0


def _cmd_live(args: argparse.Namespace) -> int:
    session = find_session(load_snapshot(args.snapshot), args.session)
    params = _params(args)
    view = build_live_view(session, params)

    print(
        f"GPS点={view.location_count}（精度≤{params.accuracy_threshold_m:g}m: {view.filtered_location_count}），"
        f"磁场读数={view.field_total}，显示={view.field_shown}，"
        f"成功配对={view.field_mapped}（{view.mapped_percent:.1f}%），天气点={len(view.weather_markers)}"
    )
    latest = view.latest_heart_rate
    if latest is not None:
        print(f"最新心率={latest.bpm:g} BPM（共 {len(view.heart_rate)} 条）")
    hr = view.heart_rate_summary
    if hr is not None:
        print(f"心率 min={hr.min_bpm:g}, max={hr.max_bpm:g}, mean={hr.mean_bpm:.1f}")
    if view.bounds is not None:
        lat, lon = view.bounds.center
        print(f"轨迹中心：{lat:.6f}, {lon:.6f}")

    if args.weather:
        for m in view.weather_markers:
            print()
            print(f"### 天气 ({m.latitude}, {m.longitude}) {m.condition}")
            for line in m.popup_lines():
                print(line)

    if args.zones_csv:
        write_zones_csv(view.zones, args.zones_csv)
        print(f"已导出：{args.zones_csv}")
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(live_view_to_dict(view), f, ensure_ascii=False, indent=2)
        print(f"已导出：{args.out}")
    return 0


def _cmd_heat(args: argparse.Namespace) -> int:
    result = reduce_tree(load_snapshot(args.snapshot), _params(args), workers=args.workers)
    st = result.stats
    print(f"会话={st.sessions}，磁场读数={st.field_samples}，配对点={st.pairs}，未匹配={st.unmatched}")

    box = bounding_box(result.points)
    if box is not None:
        print(f"范围：lat=[{box.min_lat}, {box.max_lat}], lon=[{box.min_lon}, {box.max_lon}]")

    n = write_weighted_points_csv(result.points, args.out)
    print(f"已导出：{args.out}（{n} 行）")
    return 0


def _cmd_zones(args: argparse.Namespace) -> int:
    params = _params(args)
    result = reduce_tree(load_snapshot(args.snapshot), params, workers=args.workers)
    if args.workers > 1:
        grid = aggregate_grid_parallel(result.points, params.cell_size_deg, partitions=args.workers, workers=args.workers)
    else:
        grid = aggregate_grid(result.points, params.cell_size_deg)

    bands: dict[str, int] = {}
    for cell in grid.values():
        bands[cell.band] = bands.get(cell.band, 0) + 1
    print(f"配对点={result.stats.pairs}，网格数={len(grid)}（cell={params.cell_size_deg}°），分级={bands}")

    if args.json:
        print(json.dumps(grid_to_dict(grid), ensure_ascii=False, indent=2))
    n = write_grid_cells_csv(grid, args.out)
    print(f"已导出：{args.out}（{n} 个网格）")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--snapshot", type=str, default="sample_data/snapshot.json", help="数据库导出的JSON快照路径")
    p.add_argument("--tz", type=str, default=DEFAULT_TZ, help="时区（IANA），默认 Europe/Dublin")


def _add_fusion(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--tolerance-seconds",
        type=float,
        default=TIME_TOLERANCE_SECONDS,
        help="磁场读数与GPS点配对的最大时间差（秒），默认5",
    )
    p.add_argument(
        "--max-display",
        type=int,
        default=MAX_DISPLAY_POINTS,
        help="单会话最多显示多少个磁场读数（超出时等间隔抽样），默认200",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="emf_analyze")
    p.add_argument("-v", "--verbose", action="store_true", help="输出INFO级别日志")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ls = sub.add_parser("sessions", help="列出快照中的所有会话（按时间倒序）")
    _add_common(p_ls)
    p_ls.add_argument("--json", action="store_true", help="输出JSON")
    p_ls.set_defaults(func=_cmd_sessions)

    p_ins = sub.add_parser("inspect", help="分析单个会话的记录数/时间范围/采样间隔等")
    _add_common(p_ins)
    p_ins.add_argument("--session", type=str, required=True, help="会话ID")
    p_ins.add_argument("--json", action="store_true", help="额外输出JSON（便于后处理）")
    p_ins.set_defaults(func=_cmd_inspect)

    p_live = sub.add_parser("live", help="单会话视图：轨迹 + 磁场强度区域 + 天气点")
    _add_common(p_live)
    _add_fusion(p_live)
    p_live.add_argument("--session", type=str, required=True, help="会话ID")
    p_live.add_argument("--out", type=str, default=None, help="输出视图JSON路径")
    p_live.add_argument("--zones-csv", type=str, default=None, help="输出强度区域CSV路径")
    p_live.add_argument("--weather", action="store_true", help="打印每个天气点的详情")
    p_live.set_defaults(func=_cmd_live)

    p_heat = sub.add_parser("heat", help="汇总所有会话，导出热力图加权点（weight∈[0,1]）")
    _add_common(p_heat)
    _add_fusion(p_heat)
    p_heat.add_argument("--out", type=str, default="heat.csv", help="输出CSV路径")
    p_heat.add_argument("--workers", type=int, default=1, help="并发 worker 数（按会话并行）")
    p_heat.set_defaults(func=_cmd_heat)

    p_zones = sub.add_parser("zones", help="汇总所有会话并按固定网格求平均强度")
    _add_common(p_zones)
    _add_fusion(p_zones)
    p_zones.add_argument(
        "--cell-size",
        type=float,
        default=GRID_CELL_DEG,
        help="网格边长（度），默认0.01（约1km，未按纬度修正）",
    )
    p_zones.add_argument("--out", type=str, default="zones.csv", help="输出CSV路径")
    p_zones.add_argument("--workers", type=int, default=1, help="并发 worker 数")
    p_zones.add_argument("--json", action="store_true", help="额外输出JSON")
    p_zones.set_defaults(func=_cmd_zones)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (FileNotFoundError, KeyError, ValueError) as exc:
        msg = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"错误：{msg}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
