from __future__ import annotations

from pathlib import Path
from typing import Any

import streamlit as st

from emf_analyze.aggregate import ReduceResult, reduce_tree
from emf_analyze.classify import ZONE_COLOURS, heat_colour, legend_entries
from emf_analyze.export import grid_to_dict
from emf_analyze.grid import aggregate_grid
from emf_analyze.live import LiveView, build_live_view
from emf_analyze.models import (
    DEFAULT_TZ,
    GRID_CELL_DEG,
    MAX_DISPLAY_POINTS,
    TIME_TOLERANCE_SECONDS,
    FusionParams,
    SessionMeta,
)
from emf_analyze.records import find_session, list_sessions, load_snapshot
from emf_analyze.timeutils import format_local

# 网格中心点在地图上的显示半径（米），约为0.01°格子的一半
CELL_MARKER_M = 500.0


@st.cache_data(show_spinner=False)
def _load_tree(snapshot: str, mtime: float) -> Any:
    _ = mtime  # part of cache key so updated snapshots reload automatically
    return load_snapshot(snapshot)


@st.cache_data(show_spinner=False)
def _reduce(snapshot: str, mtime: float, params: FusionParams) -> ReduceResult:
    return reduce_tree(_load_tree(snapshot, mtime), params)


def _session_label(m: SessionMeta, tz_name: str) -> str:
    when = format_local(m.timestamp, tz_name) if m.timestamp else "?"
    return f"{when} · {m.status or '-'} · {m.session_id}"


def _render_live(view: LiveView) -> None:
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("GPS点", f"{view.location_count:,}")
    c2.metric("磁场读数", f"{view.field_total:,}")
    c3.metric("已配对（显示中）", f"{view.field_mapped}/{view.field_shown}")
    c4.metric("配对率", f"{view.mapped_percent:.1f}%")

    latest = view.latest_heart_rate
    if latest is not None:
        st.metric("最新心率", f"{latest.bpm:g} BPM", help=f"共 {len(view.heart_rate)} 条读数")
    hr = view.heart_rate_summary
    if hr is not None:
        st.caption(f"心率 min={hr.min_bpm:g} · max={hr.max_bpm:g} · mean={hr.mean_bpm:.1f} BPM")
    if view.bounds is not None:
        lat, lon = view.bounds.center
        st.caption(f"轨迹中心：{lat:.5f}, {lon:.5f}")

    rows: list[dict[str, object]] = [
        {"latitude": lat, "longitude": lon, "size": 3.0, "colour": "#1E40AF"} for lat, lon in view.path
    ]
    rows += [
        {"latitude": z.latitude, "longitude": z.longitude, "size": z.radius_m, "colour": z.colour}
        for z in view.zones
    ]
    rows += [
        {"latitude": m.latitude, "longitude": m.longitude, "size": 40.0, "colour": "#8B5CF6"}
        for m in view.weather_markers
    ]
    if rows:
        st.map(rows, latitude="latitude", longitude="longitude", size="size", color="colour")
    else:
        st.info("该会话还没有可显示的点。")

    with st.expander("强度区域明细", expanded=False):
        st.dataframe(
            [
                {
                    "seconds": round(z.seconds, 1),
                    "magnitude_uT": round(z.magnitude, 1),
                    "radius_m": round(z.radius_m),
                    "band": z.band,
                }
                for z in view.zones
            ],
            use_container_width=True,
            height=320,
        )
    if view.weather_markers:
        with st.expander("天气", expanded=False):
            for m in view.weather_markers:
                st.markdown(f"**{m.condition or '-'}** ({m.latitude:.4f}, {m.longitude:.4f})")
                st.text("\n".join(m.popup_lines()))


def main() -> None:
    st.set_page_config(page_title="EMF 地图", layout="wide")
    st.title("EMF 地图：磁场强度 × GPS 轨迹")

    with st.sidebar:
        st.subheader("数据与时区")
        tz_name = st.text_input("时区（IANA）", value=DEFAULT_TZ)
        snapshot = st.text_input("快照 JSON 路径", value="sample_data/snapshot.json")
        mode = st.radio("视图", ["live", "heatmap", "zones"], format_func=lambda m: {
            "live": "单会话（Live）",
            "heatmap": "热力图（全部会话）",
            "zones": "网格分区（全部会话）",
        }[m])

        with st.expander("高级参数（通常不用改）", expanded=False):
            tolerance = st.number_input("配对时间容差（秒）", value=TIME_TOLERANCE_SECONDS, min_value=0.0, step=1.0)
            max_display = st.number_input("最多显示读数", value=MAX_DISPLAY_POINTS, min_value=1, step=50)
            cell_size = st.number_input("网格边长（度）", value=GRID_CELL_DEG, min_value=0.001, step=0.005, format="%.3f")

        st.subheader("图例")
        for band, text in legend_entries():
            st.markdown(f"<span style='color:{ZONE_COLOURS[band]}'>●</span> {text}", unsafe_allow_html=True)

    p = Path(snapshot)
    if not p.exists():
        st.error(f"找不到文件：{snapshot!r}。可以先运行 scripts/generate_sample_snapshot.py 生成示例数据。")
        return

    params = FusionParams(
        tolerance_seconds=float(tolerance),
        max_display_points=int(max_display),
        cell_size_deg=float(cell_size),
        tz_name=tz_name,
    )
    mtime = p.stat().st_mtime
    try:
        tree = _load_tree(snapshot, mtime)
    except Exception as exc:
        st.exception(exc)
        return

    if mode == "live":
        metas = list_sessions(tree)
        if not metas:
            st.warning("快照中没有会话。")
            return
        picked = st.selectbox("会话", metas, format_func=lambda m: _session_label(m, tz_name))
        view = build_live_view(find_session(tree, picked.session_id), params)
        _render_live(view)
        return

    with st.spinner("正在汇总所有会话 ..."):
        result = _reduce(snapshot, mtime, params)
    c1, c2, c3 = st.columns(3)
    c1.metric("会话", str(result.stats.sessions))
    c2.metric("配对点", f"{result.stats.pairs:,}")
    c3.metric("未匹配读数", f"{result.stats.unmatched:,}")
    if not result.points:
        st.info("没有可用的配对点。")
        return

    if mode == "heatmap":
        st.map(
            [
                {"latitude": pt.latitude, "longitude": pt.longitude, "size": 20.0 + 60.0 * pt.weight,
                 "colour": heat_colour(pt.weight)}
                for pt in result.points
            ],
            latitude="latitude",
            longitude="longitude",
            size="size",
            color="colour",
        )
        return

    grid = aggregate_grid(result.points, params.cell_size_deg)
    cells = grid_to_dict(grid)
    st.map(
        [
            {"latitude": 0.5 * (c["min_lat"] + c["max_lat"]), "longitude": 0.5 * (c["min_lon"] + c["max_lon"]),
             "size": CELL_MARKER_M * params.cell_size_deg / GRID_CELL_DEG, "colour": c["colour"]}
            for c in cells
        ],
        latitude="latitude",
        longitude="longitude",
        size="size",
        color="colour",
    )
    st.subheader("网格明细")
    st.dataframe(cells, use_container_width=True, height=420)
    st.caption("说明：网格按 floor(lat/cell)、floor(lon/cell) 划分，单位为度，未按纬度修正。")


if __name__ == "__main__":
    main()
