from __future__ import annotations

import math
import os
import traceback
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request

from bubblecompass.core.logging import log_file_path
from bubblecompass.core.sensors import HeadingReading, LocationFix, MotionSample, SensorUpdate
from bubblecompass.core.session import SessionRecorder
from bubblecompass.runtime.service import CompassRuntime
from bubblecompass.ui.dial import encode_jpeg, render_dial


class BadRequest(ValueError):
    pass


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise BadRequest(f"missing field: {key}")
    if isinstance(value, bool):
        raise BadRequest(f"field {key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise BadRequest(f"field {key} must be a number") from None


def _finite(value: Any) -> Any:
    """Replace non-finite floats with None; JSON has no NaN."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(v) for v in value]
    return value


def _query_int(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise BadRequest(f"query parameter {name} must be an integer") from None


def _payload() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise BadRequest("expected a JSON object")
    return data


def create_app(runtime: Optional[CompassRuntime] = None, recorder: Optional[SessionRecorder] = None) -> Flask:
    app = Flask(__name__, static_folder=None)
    rt = runtime or CompassRuntime()
    logger = rt.logger
    app.config["COMPASS_RUNTIME"] = rt

    def ingest(update: SensorUpdate) -> Tuple[Response, int]:
        if recorder is not None:
            recorder.write_update(update)
        if rt.status.running:
            rt.submit(update)
        else:
            rt.apply(update)
        return jsonify({"ok": True}), 202

    @app.errorhandler(BadRequest)
    def bad_request(exc: BadRequest):
        logger.warning("api rejected | path=%s error=%s", request.path, exc)
        return jsonify({"ok": False, "error": str(exc)}), 400

    @app.post("/api/location")
    def api_location():
        data = _payload()
        lat = _number(data, "latitude")
        lon = _number(data, "longitude")
        return ingest(LocationFix(lat, lon))

    @app.post("/api/heading")
    def api_heading():
        data = _payload()
        magnetic = _number(data, "magnetic_heading")
        true_heading = _number(data, "true_heading", -1.0)
        return ingest(HeadingReading(magnetic, true_heading))

    @app.post("/api/motion")
    def api_motion():
        data = _payload()
        pitch = _number(data, "pitch")
        roll = _number(data, "roll")
        return ingest(MotionSample(pitch, roll))

    @app.get("/api/status")
    def api_status():
        return jsonify(_finite(rt.snapshot().to_dict()))

    @app.get("/api/preview.jpg")
    def api_preview():
        size = _query_int("size", rt.profile.dial_size_px)
        size = max(120, min(1600, size))
        img = render_dial(rt.snapshot(), size=size, settings=rt.profile.tilt)
        return Response(encode_jpeg(img), mimetype="image/jpeg")

    @app.get("/api/timeline")
    def api_timeline():
        n = _query_int("n", 50)
        return jsonify(_finite(rt.get_timeline(n)))

    @app.get("/api/logs/tail")
    def api_logs_tail():
        n = _query_int("n", 200)
        path = log_file_path()
        if not os.path.exists(path):
            return ("", 204)
        try:
            with open(path, "r", encoding="utf-8", errors="ignore") as f:
                lines = f.readlines()[-n:] if n > 0 else []
            return Response("".join(lines), mimetype="text/plain")
        except OSError:
            return Response(traceback.format_exc(), mimetype="text/plain", status=500)

    return app
