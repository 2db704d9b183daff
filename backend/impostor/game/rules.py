from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass

from .models import SKIP, Room, Winner


def impostor_count(player_count: int, divisor: int) -> int:
    return max(1, player_count // divisor)


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)


def within(ax: float, ay: float, bx: float, by: float, radius: float) -> bool:
    return distance(ax, ay, bx, by) < radius


def alive_counts(room: Room) -> tuple[int, int]:
    """Returns (alive impostors, alive crewmates)."""
    impostors = 0
    crewmates = 0
    for p in room.players.values():
        if not p.alive:
            continue
        if p.role == "impostor":
            impostors += 1
        elif p.role == "crewmate":
            crewmates += 1
    return impostors, crewmates


def evaluate_winner(room: Room) -> Winner | None:
    """Decide the round from room state alone.

    Priority is fixed so that simultaneous conditions never depend on the
    order actions arrived in: impostors eliminated, then impostor parity,
    then task completion.
    """
    if room.phase not in ("playing", "meeting"):
        return None

    impostors, crewmates = alive_counts(room)
    if impostors == 0:
        return "crewmate"
    if impostors >= crewmates:
        return "impostor"
    if room.total_tasks > 0 and room.completed_tasks >= room.total_tasks:
        return "crewmate"
    return None


@dataclass
class VoteTally:
    counts: dict[str, int]
    ejected_id: str | None
    tie: bool


def tally_votes(votes: dict[str, str]) -> VoteTally:
    counts = Counter(votes.values())
    if not counts:
        return VoteTally(counts={}, ejected_id=None, tie=False)

    top = max(counts.values())
    leaders = [target for target, n in counts.items() if n == top]
    if len(leaders) > 1:
        return VoteTally(counts=dict(counts), ejected_id=None, tie=True)

    leader = leaders[0]
    return VoteTally(
        counts=dict(counts),
        ejected_id=None if leader == SKIP else leader,
        tie=False,
    )
