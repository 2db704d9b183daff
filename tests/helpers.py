"""Test helpers shared by unit and integration tests."""

import time


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


def impostors(room):
    return [p for p in room.players.values() if p.role == "impostor"]


def crewmates(room):
    return [p for p in room.players.values() if p.role == "crewmate"]


def place(player, x, y):
    player.x = float(x)
    player.y = float(y)


def received(client, name):
    """Drain a socket test client's queue and return the args of every ``name`` event."""
    return [e["args"] for e in client.get_received() if e["name"] == name]


def wait_for(client, name, timeout=2.0):
    """Poll until a ``name`` event arrives from a background task."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        found = received(client, name)
        if found:
            return found
        time.sleep(0.02)
    return []
