from __future__ import annotations

import logging
import random
import time
from threading import RLock
from typing import Callable

from ..config import Config
from .errors import GameInProgress, RoomFull, RoomNotFound
from .map import DEFAULT_MAP, GameMap
from .models import Player, Room


logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class RoomRegistry:
    """Process-scoped table of active rooms, keyed by room code.

    Starts empty; rooms are removed as soon as their last player leaves.
    All room state is mutated under ``lock``.
    """

    def __init__(
        self,
        game_map: GameMap = DEFAULT_MAP,
        rng: random.Random | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.lock = RLock()
        self.map = game_map
        self.rng = rng or random.Random()
        self.clock = clock or now_ms
        self._rooms: dict[str, Room] = {}

    def _new_code(self) -> str:
        code = f"{self.rng.randrange(1_000_000):06d}"
        while code in self._rooms:
            code = f"{self.rng.randrange(1_000_000):06d}"
        return code

    def create_room(self, host_id: str, host_name: str) -> Room:
        with self.lock:
            room = Room(code=self._new_code(), host_id=host_id, created_at_ms=self.clock())
            x, y = self.map.spawn_point(0, Config.ROOM_CAPACITY)
            room.players[host_id] = Player(id=host_id, name=host_name, x=x, y=y)
            self._rooms[room.code] = room
            logger.info("Room %s created by %s", room.code, host_name)
            return room

    def join_room(self, code: str, player_id: str, name: str) -> Player:
        with self.lock:
            room = self._rooms.get(code)
            if room is None:
                raise RoomNotFound()
            if room.phase != "lobby":
                raise GameInProgress()
            if len(room.players) >= Config.ROOM_CAPACITY:
                raise RoomFull()

            x, y = self.map.spawn_point(len(room.players), Config.ROOM_CAPACITY)
            player = Player(id=player_id, name=name, x=x, y=y)
            room.players[player_id] = player
            logger.info("%s joined room %s (%d players)", name, code, len(room.players))
            return player

    def get_room(self, code: str) -> Room | None:
        with self.lock:
            return self._rooms.get(code)

    def list_rooms(self) -> list[Room]:
        with self.lock:
            return list(self._rooms.values())

    def find_room_by_player(self, player_id: str) -> Room | None:
        # Linear sweep; room counts are small.
        with self.lock:
            for room in self._rooms.values():
                if player_id in room.players:
                    return room
            return None

    def remove_player(self, player_id: str) -> tuple[Room, Player] | None:
        """Remove a player from whichever room holds them.

        Reassigns the host if needed and drops the room once empty.
        """
        with self.lock:
            room = self.find_room_by_player(player_id)
            if room is None:
                return None

            player = room.players.pop(player_id)
            room.dead_players.discard(player_id)
            room.kill_cooldowns.pop(player_id, None)

            if not room.players:
                del self._rooms[room.code]
                logger.info("Room %s closed (empty)", room.code)
            elif room.host_id == player_id:
                room.host_id = next(iter(room.players.keys()))
                logger.info("Room %s host passed to %s", room.code, room.players[room.host_id].name)

            return room, player

    def __len__(self) -> int:
        with self.lock:
            return len(self._rooms)
