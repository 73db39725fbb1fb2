from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    return jsonify({"ok": True})


@bp.get("/version")
def version():
    return jsonify({"version": current_app.config.get("APP_VERSION", "")})
