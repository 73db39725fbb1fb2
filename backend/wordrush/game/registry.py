from __future__ import annotations

import random
from threading import RLock

from ..logging_config import get_logger
from .models import Player, Room

logger = get_logger("registry")

# No 0/O or 1/I so codes can be read aloud and typed.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5


class RoomRegistry:
    """Process-wide map of room code to :class:`Room`.

    The lock only guards the map itself; room state is serialized by each
    room's own lock.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._rng = rng or random.SystemRandom()

    def _new_code(self) -> str:
        return "".join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))

    def create(self, host: Player, rounds_per_player: int) -> Room:
        with self._lock:
            code = self._new_code()
            while code in self._rooms:
                code = self._new_code()

            room = Room(code=code, host_id=host.id, rounds_per_player=rounds_per_player)
            room.add_player(host)
            self._rooms[code] = room

        logger.info("room %s created by %s", code, host.id)
        return room

    def get(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(code)

    def destroy(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.pop(code, None)
        if room is None:
            return False
        room.closed = True
        logger.info("room %s destroyed", code)
        return True

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
