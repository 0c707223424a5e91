"""
Read‑only HTTP exposition of the miner snapshot.

All endpoints are GET‑only and serve whatever the snapshot store holds;
refresh errors never surface here.
"""
import logging
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from server.metrics import build_registry
from storage.snapshot_store import SnapshotNotAvailable, SnapshotStore

logger = logging.getLogger(__name__)


def _not_ready():
    return jsonify({
        "error": "Not Ready",
        "message": "No miner snapshot has been collected yet.",
    }), 503


def create_app(store: SnapshotStore, registry=None) -> Flask:
    """
    Create the exposition Flask application.

    Args:
        store: Snapshot store shared with the scheduler
        registry: Prometheus registry to render (built from ``store`` if omitted)

    Returns:
        Flask application instance
    """
    app = Flask(__name__)
    app.extensions["snapshot_store"] = store
    registry = registry if registry is not None else build_registry(store)
    app.startup_time = datetime.now(timezone.utc)

    @app.before_request
    def reject_non_get_requests():
        """Reject all non-GET requests with 405 Method Not Allowed."""
        if request.method not in ("GET", "HEAD"):
            return jsonify({
                "error": "Method Not Allowed",
                "message": "This exporter is read-only. Only GET requests are accepted."
            }), 405

    @app.route("/json", methods=["GET"])
    def snapshot_json():
        """Current snapshot as a flat JSON record, 503 before the first refresh."""
        try:
            payload = store.get_payload()
        except SnapshotNotAvailable:
            return _not_ready()
        return Response(payload, status=200, mimetype="application/json")

    @app.route("/metrics", methods=["GET"])
    def metrics():
        return Response(generate_latest(registry), status=200, headers={"Content-Type": CONTENT_TYPE_LATEST})

    @app.route("/health", methods=["GET"])
    def health():
        now = datetime.now(timezone.utc)
        body = {
            "status": "ok",
            "uptime_seconds": (now - app.startup_time).total_seconds(),
            "snapshot_available": False,
            "snapshot_age_seconds": None,
            "timestamp": now.isoformat(),
        }
        try:
            snapshot = store.get_current()
        except SnapshotNotAvailable:
            return jsonify(body), 200
        body["snapshot_available"] = True
        body["snapshot_age_seconds"] = (now - snapshot.fetched_at).total_seconds()
        body["miner_id"] = snapshot.miner_id
        return jsonify(body), 200

    logger.info("Exposition app created: /json, /metrics, /health")
    return app
