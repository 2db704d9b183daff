"""Shared fixtures for unit and integration tests."""

import random

import pytest

from helpers import FakeClock
from impostor.game import service
from impostor.game.registry import RoomRegistry


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return RoomRegistry(rng=random.Random(1234), clock=clock)


@pytest.fixture
def lobby(registry):
    """Factory: a lobby room hosted by p0 with ``count`` players p0..pN-1."""

    def _make(count=4):
        room = service.create_room(registry, "p0", "Player0")
        for i in range(1, count):
            service.join_room(registry, room.code, f"p{i}", f"Player{i}")
        return room

    return _make


@pytest.fixture
def started(registry, lobby):
    """Factory: a room that has already started a round."""

    def _make(count=4):
        room = lobby(count)
        service.start_game(registry, "p0")
        return room

    return _make
