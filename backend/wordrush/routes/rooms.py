from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<code>")
def get_room(code: str):
    # Rooms are created over Socket.IO only, since the creator must hold a connection.
    service = current_app.extensions["wordrush"]
    snapshot = service.snapshot(code.strip().upper())
    if snapshot is None:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(snapshot)
