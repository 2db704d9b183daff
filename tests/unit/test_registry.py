"""Tests for RoomRegistry: codes, joins, lookups, removal."""

import random

import pytest

from impostor.config import Config
from impostor.game.errors import GameInProgress, RoomFull, RoomNotFound
from impostor.game.registry import RoomRegistry


class TestCreateRoom:
    def test_code_is_six_digits(self, registry):
        room = registry.create_room("h", "Host")
        assert len(room.code) == 6
        assert room.code.isdigit()

    def test_host_is_first_player(self, registry):
        room = registry.create_room("h", "Host")
        assert room.host_id == "h"
        assert list(room.players) == ["h"]
        assert room.phase == "lobby"

    def test_codes_are_unique_on_collision(self):
        class StuckRng(random.Random):
            """Returns the same value twice before moving on."""

            def __init__(self):
                super().__init__()
                self.values = iter([123456, 123456, 654321])

            def randrange(self, *args, **kwargs):
                return next(self.values)

        registry = RoomRegistry(rng=StuckRng())
        first = registry.create_room("a", "A")
        second = registry.create_room("b", "B")
        assert first.code == "123456"
        assert second.code == "654321"

    def test_registry_starts_empty(self):
        assert len(RoomRegistry()) == 0


class TestJoinRoom:
    def test_unknown_code(self, registry):
        with pytest.raises(RoomNotFound):
            registry.join_room("000000", "p", "P")

    def test_join_adds_player(self, registry):
        room = registry.create_room("h", "Host")
        player = registry.join_room(room.code, "p", "P")
        assert room.players["p"] is player
        assert player.alive
        assert player.role == "unassigned"

    def test_room_full(self, registry):
        room = registry.create_room("h", "Host")
        for i in range(Config.ROOM_CAPACITY - 1):
            registry.join_room(room.code, f"p{i}", f"P{i}")
        with pytest.raises(RoomFull):
            registry.join_room(room.code, "late", "Late")

    def test_game_in_progress(self, registry):
        room = registry.create_room("h", "Host")
        room.phase = "playing"
        with pytest.raises(GameInProgress):
            registry.join_room(room.code, "p", "P")


class TestLookupAndRemoval:
    def test_find_room_by_player(self, registry):
        a = registry.create_room("a", "A")
        b = registry.create_room("b", "B")
        registry.join_room(b.code, "c", "C")
        assert registry.find_room_by_player("a") is a
        assert registry.find_room_by_player("c") is b
        assert registry.find_room_by_player("nobody") is None

    def test_remove_unknown_player(self, registry):
        assert registry.remove_player("ghost") is None

    def test_host_reassigned(self, registry):
        room = registry.create_room("h", "Host")
        registry.join_room(room.code, "p", "P")
        registry.remove_player("h")
        assert room.host_id == "p"
        assert registry.get_room(room.code) is room

    def test_empty_room_destroyed(self, registry):
        room = registry.create_room("h", "Host")
        registry.remove_player("h")
        assert registry.get_room(room.code) is None
        assert registry.list_rooms() == []
