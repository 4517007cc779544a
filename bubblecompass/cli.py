from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from bubblecompass.core.config import load_compass_profile
from bubblecompass.core.session import SessionRecorder, load_updates, replay
from bubblecompass.navigation.bearing import (
    TARGET_NAME,
    TOTTENHAM_HOTSPUR_STADIUM,
    GeoPoint,
    arrow_rotation,
    compute_bearing_and_distance,
    format_distance,
    is_aligned,
)


def cmd_bearing(args: argparse.Namespace) -> int:
    try:
        here = GeoPoint.validated(args.latitude, args.longitude)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    profile = load_compass_profile()
    bearing, distance = compute_bearing_and_distance(here, TOTTENHAM_HOTSPUR_STADIUM, model=args.model or profile.distance_model)
    print(f"Target:   {TARGET_NAME}")
    print(f"Distance: {format_distance(distance)}")
    print(f"Bearing:  {int(bearing)}°")
    if args.heading is not None:
        rotation = arrow_rotation(bearing, args.heading)
        aligned = is_aligned(rotation, profile.tolerance_deg)
        print(f"Heading:  {int(args.heading)}°")
        print(f"Arrow:    {rotation:+.1f}°{'  (aligned)' if aligned else ''}")
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    from bubblecompass.runtime.service import CompassRuntime

    if not os.path.exists(args.path):
        print(f"Session file not found: {args.path}", file=sys.stderr)
        return 2
    try:
        updates = load_updates(args.path)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    runtime = CompassRuntime()
    snap = replay(runtime, updates)
    print(
        {
            "updates": snap.updates,
            "distance": snap.distance_text,
            "bearing": round(snap.derived.bearing_to_target, 2),
            "heading": round(snap.device.heading, 2),
            "aligned": snap.derived.is_aligned,
            "haptic_pulses": snap.haptic_pulses,
        }
    )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from bubblecompass.runtime.service import CompassRuntime
    from bubblecompass.ui.server import create_app

    runtime = CompassRuntime()
    recorder = None
    if args.record:
        recorder = SessionRecorder(base_dir=args.record)
        sid = recorder.start({"target": TARGET_NAME, **TOTTENHAM_HOTSPUR_STADIUM.to_dict()})
        runtime.logger.info("recording session | id=%s dir=%s", sid, recorder.dir)
    app = create_app(runtime, recorder=recorder)
    runtime.start()
    port = args.port or int(os.environ.get("PORT", runtime.profile.server_port))
    try:
        app.run(host=args.host or runtime.profile.server_host, port=port, debug=False, threaded=True)
    finally:
        runtime.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bubblecompass", description=f"Point toward {TARGET_NAME}")
    sub = ap.add_subparsers(dest="command")

    p_bearing = sub.add_parser("bearing", help="Print bearing and distance from a position")
    p_bearing.add_argument("latitude", type=float)
    p_bearing.add_argument("longitude", type=float)
    p_bearing.add_argument("--heading", type=float, default=None, help="Device heading in degrees")
    p_bearing.add_argument("--model", choices=["haversine", "wgs84"], default=None, help="Distance model")
    p_bearing.set_defaults(func=cmd_bearing)

    p_replay = sub.add_parser("replay", help="Replay a recorded updates.jsonl through the runtime")
    p_replay.add_argument("path")
    p_replay.set_defaults(func=cmd_replay)

    p_serve = sub.add_parser("serve", help="Run the HTTP shell")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--record", default=None, help="Directory for session recordings")
    p_serve.set_defaults(func=cmd_serve)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if not getattr(args, "func", None):
        ap.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
