from __future__ import annotations

from typing import Any

from flask_socketio import SocketIO


class SocketIOBroadcaster:
    """Delivers game events over Socket.IO, using the room code as the Socket.IO room."""

    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self.socketio = socketio
        self.namespace = namespace

    def subscribe(self, sid: str, room_code: str) -> None:
        self.socketio.server.enter_room(sid, room_code, namespace=self.namespace)

    def to_room(self, room_code: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=room_code, namespace=self.namespace)

    def to_client(self, sid: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)
