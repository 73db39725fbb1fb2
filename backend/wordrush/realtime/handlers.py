from __future__ import annotations

from typing import Any

from flask import request
from flask_socketio import SocketIO, emit

from ..game.exceptions import GameError
from ..game.service import GameService
from ..logging_config import get_logger

logger = get_logger("realtime")


def _payload(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def _room_code(payload: dict) -> str:
    return str(payload.get("roomCode", "")).strip().upper()


def register_socketio_handlers(socketio: SocketIO, service: GameService) -> None:
    def _reject(exc: GameError) -> dict:
        logger.debug("rejected %s: %s", request.sid, exc.message)
        emit("errorMsg", exc.message)
        return {"ok": False, "error": exc.code}

    @socketio.on("createRoom")
    def create_room(data):
        payload = _payload(data)
        try:
            room = service.create_room(request.sid, payload.get("name"))
        except GameError as exc:
            return _reject(exc)
        return {"ok": True, "roomCode": room.code}

    @socketio.on("joinRoom")
    def join_room(data):
        payload = _payload(data)
        room_code = _room_code(payload)
        try:
            room = service.join_room(request.sid, room_code, payload.get("name"))
        except GameError as exc:
            return _reject(exc)
        return {"ok": True, "roomCode": room.code}

    @socketio.on("startGame")
    def start_game(data):
        payload = _payload(data)
        try:
            service.start_game(request.sid, _room_code(payload), payload.get("roundsPerPlayer"))
        except GameError as exc:
            return _reject(exc)
        return {"ok": True}

    @socketio.on("submitAnswers")
    def submit_answers(data):
        payload = _payload(data)
        try:
            scored = service.submit_answers(request.sid, _room_code(payload), payload.get("answers"))
        except GameError as exc:
            return _reject(exc)
        return {"ok": True, "scored": scored}

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        service.handle_disconnect(request.sid)
