# todo_manage/app.py
import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from .config import Settings, get_settings
from .gateway import build_gateway
from .orchestrator import LifecycleOrchestrator
from .records import now_utc, to_iso

logger = logging.getLogger(__name__)


def current_user_id() -> str:
    """
    handler.py puts the JWT sub into X-User-Sub.
    Falls back to 'anonymous' for local runs.
    """
    return request.headers.get("X-User-Sub") or "anonymous"


def create_app(settings: Optional[Settings] = None, gateway=None, clock=now_utc) -> Flask:
    settings = settings or get_settings()
    gateway = gateway if gateway is not None else build_gateway(settings)
    orchestrator = LifecycleOrchestrator(settings, gateway, clock=clock)

    app = Flask(__name__)
    CORS(
        app,
        resources={r"/*": {"origins": list(settings.allowed_origins)}},
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # ---------- Health ----------
    @app.get("/health")
    def health():
        return jsonify({"ok": True, "time": to_iso(clock())})

    # ---------- Preview ----------
    @app.get("/lifecycle/preview")
    def preview():
        planned = orchestrator.plan()
        if not planned.is_ok:
            return jsonify({"error": planned.error.value}), 500
        return jsonify(planned.value.to_dict())

    # ---------- Run ----------
    @app.post("/lifecycle/run")
    def run():
        logger.info("manual lifecycle run requested by %s", current_user_id())
        report = orchestrator.run()
        return jsonify(report.to_dict()), (200 if report.ok else 500)

    # preflight
    @app.route("/", methods=["OPTIONS"])
    @app.route("/<path:path>", methods=["OPTIONS"])
    def cors_preflight(path=None):
        return ("", 204)

    return app


app = create_app()
