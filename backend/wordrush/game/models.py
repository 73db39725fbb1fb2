from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Literal, Optional, Protocol


RoomState = Literal["lobby", "playing", "ended"]

MIN_ROUNDS_PER_PLAYER = 1
MAX_ROUNDS_PER_PLAYER = 10


class TimerHandle(Protocol):
    @property
    def pending(self) -> bool: ...

    def cancel(self) -> None: ...


@dataclass
class Player:
    id: str
    name: str
    score: int = 0


@dataclass
class Room:
    code: str
    host_id: str
    state: RoomState = "lobby"
    players: list[Player] = field(default_factory=list)
    order: list[str] = field(default_factory=list)
    turn_index: int = 0
    rounds_per_player: int = 5
    current_letter: str | None = None
    used_letters: list[str] = field(default_factory=list)
    timer_end_ts: int | None = None
    turn_serial: int = 0
    # Runtime only; never part of a snapshot.
    timer: Optional[TimerHandle] = field(default=None, repr=False, compare=False)
    closed: bool = field(default=False, repr=False, compare=False)
    lock: Any = field(default_factory=RLock, repr=False, compare=False)

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def add_player(self, player: Player) -> None:
        self.players.append(player)
        self.order.append(player.id)

    def remove_player(self, player_id: str) -> Player | None:
        player = self.get_player(player_id)
        if player is None:
            return None
        self.players = [p for p in self.players if p.id != player_id]
        self.order = [pid for pid in self.order if pid != player_id]
        return player

    def max_turns(self) -> int:
        return len(self.players) * self.rounds_per_player

    def current_player_id(self) -> str | None:
        if not self.order:
            return None
        return self.order[self.turn_index % len(self.order)]

    def current_player(self) -> Player | None:
        pid = self.current_player_id()
        return self.get_player(pid) if pid else None


def clamp_rounds(raw: Any, default: int) -> int:
    try:
        rounds = int(raw)
    except (TypeError, ValueError, OverflowError):
        rounds = default
    return max(MIN_ROUNDS_PER_PLAYER, min(MAX_ROUNDS_PER_PLAYER, rounds))


def room_snapshot(room: Room) -> dict:
    return {
        "state": room.state,
        "players": [{"id": p.id, "name": p.name, "score": p.score} for p in room.players],
        "hostId": room.host_id,
        "turnIndex": room.turn_index,
        "currentLetter": room.current_letter,
        "roundsPerPlayer": room.rounds_per_player,
        "order": list(room.order),
        "timerEndTs": room.timer_end_ts,
        "usedLetters": list(room.used_letters),
    }
