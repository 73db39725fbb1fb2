"""Turn engine: room lifecycle, per-turn countdown and disconnect recovery.

Every mutation of a room happens while holding ``room.lock``. Each new turn
bumps ``room.turn_serial``; a scheduled timeout only acts if the serial it
captured is still current, so a timeout that fires late (or after a
best-effort cancel) is a no-op.
"""

from __future__ import annotations

import random
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Protocol

from ..logging_config import get_logger
from .exceptions import InvalidPayload, NotAllowed, RoomNotFound
from .letters import draw_letter
from .models import Player, Room, TimerHandle, clamp_rounds, room_snapshot
from .registry import RoomRegistry
from .validators import Validator, check_submission

logger = get_logger("service")

LATE_SUBMISSION_POLICIES = ("notify", "silent", "reject")

MAX_NAME_LENGTH = 16


def now_ms() -> int:
    return int(time.time() * 1000)


class Broadcaster(Protocol):
    def subscribe(self, sid: str, room_code: str) -> None: ...

    def to_room(self, room_code: str, event: str, payload: Any) -> None: ...

    def to_client(self, sid: str, event: str, payload: Any) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_sec: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def sleep(self, seconds: float) -> None: ...


def _clean_name(raw: Any) -> str:
    n = raw.strip() if isinstance(raw, str) else ""
    if not n or len(n) > MAX_NAME_LENGTH:
        raise InvalidPayload("Please enter a valid name.")
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise InvalidPayload("Please enter a valid name.")
    # No control characters.
    if any(ord(ch) < 32 for ch in n):
        raise InvalidPayload("Please enter a valid name.")
    return n


class GameService:
    def __init__(
        self,
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        scheduler: Scheduler,
        validator: Validator,
        *,
        turn_duration_ms: int = 30_000,
        timeout_buffer_ms: int = 500,
        default_rounds_per_player: int = 5,
        min_players: int = 2,
        require_distinct_answers: bool = False,
        late_submission_policy: str = "notify",
        watchdog_grace_ms: int = 1500,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
    ) -> None:
        if late_submission_policy not in LATE_SUBMISSION_POLICIES:
            raise ValueError(f"unknown late submission policy: {late_submission_policy!r}")
        self.registry = registry
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.validator = validator
        self.turn_duration_ms = turn_duration_ms
        self.timeout_buffer_ms = timeout_buffer_ms
        self.default_rounds_per_player = clamp_rounds(default_rounds_per_player, 5)
        self.min_players = min_players
        self.require_distinct_answers = require_distinct_answers
        self.late_submission_policy = late_submission_policy
        self.watchdog_grace_ms = watchdog_grace_ms
        self.clock = clock
        self.rng = rng or random.Random()
        self._watchdog_running = False

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        scheduler: Scheduler,
        validator: Validator,
        **kwargs: Any,
    ) -> "GameService":
        return cls(
            registry,
            broadcaster,
            scheduler,
            validator,
            turn_duration_ms=int(config.get("TURN_DURATION_SEC", 30)) * 1000,
            timeout_buffer_ms=int(config.get("TIMEOUT_BUFFER_MS", 500)),
            default_rounds_per_player=int(config.get("DEFAULT_ROUNDS_PER_PLAYER", 5)),
            min_players=int(config.get("MIN_PLAYERS", 2)),
            require_distinct_answers=bool(config.get("REQUIRE_DISTINCT_ANSWERS", False)),
            late_submission_policy=str(config.get("LATE_SUBMISSION_POLICY", "notify")),
            watchdog_grace_ms=int(config.get("WATCHDOG_GRACE_MS", 1500)),
            **kwargs,
        )

    # ---- room access ----

    @contextmanager
    def _locked(self, code: str) -> Iterator[Room | None]:
        """Yield the room with its lock held, or None if it is gone."""
        room = self.registry.get(code)
        if room is None:
            yield None
            return
        with room.lock:
            yield None if room.closed else room

    def snapshot(self, code: str) -> dict | None:
        with self._locked(code) as room:
            return room_snapshot(room) if room else None

    def _broadcast_update(self, room: Room) -> None:
        self.broadcaster.to_room(room.code, "roomUpdate", room_snapshot(room))

    def _toast(self, room: Room, message: str) -> None:
        self.broadcaster.to_room(room.code, "toast", message)

    # ---- lobby ----

    def create_room(self, sid: str, name: Any) -> Room:
        player = Player(id=sid, name=_clean_name(name))
        room = self.registry.create(player, rounds_per_player=self.default_rounds_per_player)
        with room.lock:
            self.broadcaster.subscribe(sid, room.code)
            snap = room_snapshot(room)
            self.broadcaster.to_client(sid, "roomJoined", {"roomCode": room.code, "snapshot": snap})
            self.broadcaster.to_room(room.code, "roomUpdate", snap)
        return room

    def join_room(self, sid: str, code: str, name: Any) -> Room:
        player_name = _clean_name(name)
        with self._locked(code) as room:
            if room is None:
                raise RoomNotFound()
            if room.state != "lobby":
                raise NotAllowed("Game already started.")
            if room.has_player(sid):
                raise NotAllowed("You are already in this room.")

            room.add_player(Player(id=sid, name=player_name))
            logger.info("room %s: %s joined (%d players)", room.code, sid, len(room.players))

            self.broadcaster.subscribe(sid, room.code)
            snap = room_snapshot(room)
            self.broadcaster.to_client(sid, "roomJoined", {"roomCode": room.code, "snapshot": snap})
            self.broadcaster.to_room(room.code, "roomUpdate", snap)
            return room

    def start_game(self, sid: str, code: str, rounds_per_player: Any = None) -> None:
        with self._locked(code) as room:
            if room is None:
                raise RoomNotFound()
            if room.host_id != sid:
                raise NotAllowed("Only host can start.")
            if room.state == "playing":
                raise NotAllowed("Game already started.")
            if room.state == "ended":
                raise NotAllowed("Game has ended.")
            if len(room.players) < self.min_players:
                raise NotAllowed(f"Need at least {self.min_players} players.")

            if rounds_per_player is not None:
                room.rounds_per_player = clamp_rounds(rounds_per_player, self.default_rounds_per_player)
            room.state = "playing"
            room.turn_index = 0
            room.used_letters = []
            self._cancel_timer(room)
            logger.info(
                "room %s: game started with %d players, %d rounds each",
                room.code,
                len(room.players),
                room.rounds_per_player,
            )

            self._broadcast_update(room)
            self._start_turn(room)

    # ---- turns ----

    def _cancel_timer(self, room: Room) -> None:
        if room.timer is not None:
            room.timer.cancel()
            room.timer = None

    def _start_turn(self, room: Room) -> None:
        if room.turn_index >= room.max_turns():
            self._end_game(room)
            return

        room.turn_serial += 1
        serial = room.turn_serial

        room.current_letter = draw_letter(room.used_letters, self.rng)
        if room.current_letter not in room.used_letters:
            room.used_letters.append(room.current_letter)
        room.timer_end_ts = self.clock() + self.turn_duration_ms

        self._cancel_timer(room)
        room.timer = self.scheduler.call_later(
            (self.turn_duration_ms + self.timeout_buffer_ms) / 1000,
            self._on_turn_timeout,
            room.code,
            serial,
        )

        current_id = room.current_player_id()
        logger.info(
            "room %s: turn %d (serial %d) letter=%s player=%s",
            room.code,
            room.turn_index,
            serial,
            room.current_letter,
            current_id,
        )
        self.broadcaster.to_room(
            room.code,
            "turnStarted",
            {"snapshot": room_snapshot(room), "currentPlayerId": current_id},
        )

    def _advance_turn(self, room: Room) -> None:
        self._cancel_timer(room)
        room.turn_index += 1
        self._start_turn(room)

    def _end_game(self, room: Room) -> None:
        self._cancel_timer(room)
        room.state = "ended"
        room.current_letter = None
        room.timer_end_ts = None
        logger.info("room %s: game over after %d turns", room.code, room.turn_index)
        self._broadcast_update(room)
        self._toast(room, "Game Over!")

    def _on_turn_timeout(self, code: str, serial: int) -> None:
        with self._locked(code) as room:
            if room is None or room.state != "playing" or room.turn_serial != serial:
                logger.debug("room %s: stale timeout for serial %d ignored", code, serial)
                return
            room.timer = None
            logger.info("room %s: turn %d timed out", room.code, room.turn_index)
            self._toast(room, "Time's up!")
            self._advance_turn(room)

    def submit_answers(self, sid: str, code: str, answers: Any) -> bool:
        """Handle a submission; returns True when it scored."""
        with self._locked(code) as room:
            if room is None:
                raise RoomNotFound()
            if room.state != "playing":
                return False
            player = room.current_player()
            if player is None or player.id != sid:
                logger.debug("room %s: submission from %s out of turn ignored", room.code, sid)
                return False

            if room.timer_end_ts is not None and self.clock() > room.timer_end_ts:
                return self._late_submission(room, player)

            check_submission(
                answers,
                room.current_letter or "",
                self.validator,
                require_distinct=self.require_distinct_answers,
            )

            player.score += 1
            logger.info("room %s: %s scored (now %d)", room.code, player.id, player.score)
            self._toast(room, f"{player.name} scored +1")
            self._advance_turn(room)
            if room.state == "playing":
                self._broadcast_update(room)
            return True

    def _late_submission(self, room: Room, player: Player) -> bool:
        logger.info(
            "room %s: late submission from %s (policy=%s)",
            room.code,
            player.id,
            self.late_submission_policy,
        )
        if self.late_submission_policy == "reject":
            raise NotAllowed("Too late! Time is up.")
        if self.late_submission_policy == "notify":
            self._toast(room, "Too late! Turn skipped.")
        self._advance_turn(room)
        if room.state == "playing":
            self._broadcast_update(room)
        return False

    # ---- connections ----

    def handle_disconnect(self, sid: str) -> list[str]:
        """Remove ``sid`` from every room it is in; returns the affected room codes."""
        affected: list[str] = []
        for candidate in self.registry.list_rooms():
            with self._locked(candidate.code) as room:
                if room is None or not room.has_player(sid):
                    continue
                affected.append(room.code)

                playing = room.state == "playing"
                previous_current = room.current_player_id()
                was_current = playing and previous_current == sid

                room.remove_player(sid)
                logger.info("room %s: %s left (%d players)", room.code, sid, len(room.players))

                if not room.players:
                    self._cancel_timer(room)
                    self.registry.destroy(room.code)
                    continue

                if room.host_id == sid:
                    room.host_id = room.players[0].id
                    logger.info("room %s: host is now %s", room.code, room.host_id)

                if playing and was_current:
                    self._toast(room, "Player left, skipping turn.")
                    self._advance_turn(room)
                elif playing and room.turn_index >= room.max_turns():
                    self._end_game(room)
                elif playing and room.current_player_id() != previous_current:
                    # Same letter and deadline, but the turn now belongs to someone else.
                    self.broadcaster.to_room(
                        room.code,
                        "turnStarted",
                        {"snapshot": room_snapshot(room), "currentPlayerId": room.current_player_id()},
                    )

                self._broadcast_update(room)
        return affected

    # ---- watchdog ----

    def sweep(self) -> list[str]:
        """Advance playing rooms whose deadline passed with no live timer."""
        advanced: list[str] = []
        now = self.clock()
        for candidate in self.registry.list_rooms():
            with self._locked(candidate.code) as room:
                if room is None or room.state != "playing" or room.timer_end_ts is None:
                    continue
                if now - room.timer_end_ts <= self.watchdog_grace_ms:
                    continue
                # A handle still pending well past its due time was lost by the scheduler.
                overdue_ms = now - room.timer_end_ts - self.timeout_buffer_ms
                if room.timer is not None and room.timer.pending and overdue_ms <= self.watchdog_grace_ms:
                    continue

                logger.warning("room %s: turn %d has no live timer, forcing advance", room.code, room.turn_index)
                advanced.append(room.code)
                self._toast(room, "Time's up!")
                self._advance_turn(room)
        return advanced

    def run_watchdog(self, interval_sec: float) -> None:
        self._watchdog_running = True
        while self._watchdog_running:
            self.scheduler.sleep(interval_sec)
            try:
                self.sweep()
            except Exception:
                logger.exception("watchdog sweep failed")

    def stop_watchdog(self) -> None:
        self._watchdog_running = False
