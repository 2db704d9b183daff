"""Fixtures for driving the server through Flask-SocketIO's test client."""

import random

import pytest

from helpers import received
from impostor.config import Config
from impostor.game.registry import RoomRegistry
from impostor.server import create_app


@pytest.fixture
def server(monkeypatch, clock):
    """(app, socketio, registry) in threading mode with the broadcast tick off."""
    monkeypatch.setenv("SOCKETIO_ASYNC_MODE", "threading")
    monkeypatch.setattr(Config, "BROADCAST_INTERVAL_SEC", 0)
    registry = RoomRegistry(rng=random.Random(7), clock=clock)
    app, socketio = create_app(registry)
    return app, socketio, registry


@pytest.fixture
def full_room(server):
    """Factory: connects ``count`` clients into one room; returns (code, clients, ids)."""
    app, socketio, registry = server

    def _make(count=4):
        host = socketio.test_client(app)
        host.emit("createRoom", "Player0")
        code = received(host, "roomCreated")[0][0]["code"]
        clients = [host]
        for i in range(1, count):
            c = socketio.test_client(app)
            c.emit("joinRoom", {"code": code, "name": f"Player{i}"})
            clients.append(c)
        ids = list(registry.get_room(code).players)
        for c in clients:
            c.get_received()
        return code, clients, ids

    return _make
