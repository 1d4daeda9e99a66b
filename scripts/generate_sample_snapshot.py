from __future__ import annotations

import argparse
import json
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "Europe/Dublin"


@dataclass(frozen=True, slots=True)
class Route:
    name: str
    lat: float
    lon: float


def _push_key(i: int) -> str:
    """Lexicographically ordered child key, like the store's push ids."""

    return f"-N{i:08d}"


def generate_session(
    *,
    rng: random.Random,
    route: Route,
    start_local: datetime,
    duration_s: int,
) -> dict[str, Any]:
    """Generate one recording session with realistic-ish sampling.

    GPS every ~1s with jitter and occasional dropouts, magnetometer at ~5Hz with
    occasional hot spots, weather every few minutes, heart rate every ~5s.
    """

    locations: dict[str, Any] = {}
    mags: dict[str, Any] = {}
    weather: dict[str, Any] = {}
    heart: dict[str, Any] = {}

    lat, lon = route.lat, route.lon
    heading = rng.uniform(0, 2 * math.pi)
    t = 0.0
    i = 0
    while t < duration_s:
        # Occasionally lose the fix for a while
        if rng.random() < 0.01:
            t += rng.uniform(8, 30)
        heading += rng.uniform(-0.3, 0.3)
        speed = rng.uniform(0.8, 1.8)
        lat += speed * math.cos(heading) / 111_000.0
        lon += speed * math.sin(heading) / (111_000.0 * math.cos(math.radians(lat)))
        locations[_push_key(i)] = {
            "seconds": round(t, 2),
            "latitude": round(lat, 7),
            "longitude": round(lon, 7),
            "altitude": round(rng.uniform(5, 40), 1),
            "velocity": round(speed, 2),
            "direction": round(math.degrees(heading) % 360, 1),
            "horizAcc": rng.choice([3.0, 5.0, 8.0, 12.0, 20.0, 65.0, "n/a"]),
        }
        i += 1
        t += rng.uniform(0.8, 1.2)

    t = 0.0
    i = 0
    hot = False
    while t < duration_s:
        if rng.random() < 0.02:
            hot = not hot
        base = rng.uniform(55, 95) if hot else rng.uniform(25, 50)
        x, y = rng.gauss(0, 1), rng.gauss(0, 1)
        z = rng.gauss(0, 1)
        norm = math.sqrt(x * x + y * y + z * z) or 1.0
        mags[_push_key(i)] = {
            "seconds": round(t, 2),
            "x": round(base * x / norm, 3),
            "y": round(base * y / norm, 3),
            "z": round(base * z / norm, 3),
        }
        i += 1
        t += rng.uniform(0.15, 0.25)

    tz = ZoneInfo(TZ)
    start = start_local.replace(tzinfo=tz)
    for k, sec in enumerate(range(0, duration_s, 300)):
        ts = (start + timedelta(seconds=sec)).astimezone(ZoneInfo("UTC"))
        weather[_push_key(k)] = {
            "ts": ts.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "lat": round(route.lat, 5),
            "lon": round(route.lon, 5),
            "temp": round(rng.uniform(6, 16), 1),
            "humidity": rng.randint(60, 95),
            "pressure_hpa": rng.randint(995, 1025),
            "wind_ms": round(rng.uniform(0, 9), 2),
            "wind_deg": rng.randint(0, 359),
            "rain_1h_mm": round(rng.choice([0.0, 0.0, 0.2, 1.1]), 1),
            "clouds_pct": rng.randint(0, 100),
            "cond": rng.choice(["Clouds", "Rain", "Clear", "Drizzle"]),
        }

    bpm = rng.uniform(70, 90)
    for k, sec in enumerate(range(0, duration_s, 5)):
        bpm = min(160.0, max(55.0, bpm + rng.uniform(-3, 3)))
        heart[_push_key(k)] = {
            "seconds": sec,
            "bpm": round(bpm),
            "timestamp": (start + timedelta(seconds=sec)).isoformat(),
        }

    return {
        "timestamp": start.astimezone(ZoneInfo("UTC")).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "status": "completed",
        "totalSamples": len(locations) + len(mags),
        "locationData": locations,
        "magnetometerData": mags,
        "openWeather": weather,
        "heartRateData": heart,
    }


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake store snapshot for demo/testing.")
    p.add_argument("--out", type=str, default="sample_data/snapshot.json", help="Output JSON path")
    p.add_argument("--sessions", type=int, default=4, help="Number of sessions")
    p.add_argument("--duration", type=int, default=900, help="Session length in seconds")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument(
        "--start",
        type=str,
        default="2025-03-01 09:00:00",
        help="Start local time in Europe/Dublin, e.g. '2025-03-01 09:00:00'",
    )
    args = p.parse_args()

    rng = random.Random(args.seed)
    routes = [
        Route("city_centre", 53.3498, -6.2603),
        Route("docklands", 53.3472, -6.2389),
        Route("phoenix_park", 53.3559, -6.3298),
        Route("rathmines", 53.3219, -6.2652),
    ]
    start_local = datetime.fromisoformat(args.start)

    sessions: dict[str, Any] = {}
    for n in range(args.sessions):
        route = routes[n % len(routes)]
        sessions[f"session_{n + 1:03d}"] = generate_session(
            rng=rng,
            route=route,
            start_local=start_local + timedelta(days=n),
            duration_s=args.duration,
        )

    tree = {"users": {"demo_user": {"sessions": sessions}}}
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(tree, ensure_ascii=False), encoding="utf-8")

    print(f"Generated: {out_path} (sessions={args.sessions}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
