from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


Phase = Literal["lobby", "playing", "meeting", "ended"]
Role = Literal["unassigned", "crewmate", "impostor"]
Winner = Literal["crewmate", "impostor"]

SKIP = "skip"


@dataclass(frozen=True)
class Task:
    catalog_id: str
    name: str
    room: str
    x: float
    y: float


@dataclass
class Body:
    player_id: str
    name: str
    x: float
    y: float
    zone: str | None = None


@dataclass
class ChatMessage:
    sender_id: str
    sender: str
    message: str
    timestamp: int


@dataclass
class Player:
    id: str
    name: str
    x: float = 0.0
    y: float = 0.0
    role: Role = "unassigned"
    alive: bool = True
    tasks: list[Task] = field(default_factory=list)
    tasks_completed: int = 0
    completed_task_indexes: set[int] = field(default_factory=set)


@dataclass
class Room:
    code: str
    host_id: str
    phase: Phase = "lobby"
    created_at_ms: int = 0
    players: dict[str, Player] = field(default_factory=dict)
    dead_players: set[str] = field(default_factory=set)
    bodies: list[Body] = field(default_factory=list)
    # Meeting
    meeting_id: int = 0
    meeting_caller: str | None = None
    meeting_reason: str | None = None
    votes: dict[str, str] = field(default_factory=dict)
    voting_ends_at_ms: int | None = None
    # Set after a vote resolves; live state pushes pause until it clears.
    resume_at_ms: int | None = None
    # Progress
    total_tasks: int = 0
    completed_tasks: int = 0
    kill_cooldowns: dict[str, int] = field(default_factory=dict)
    chat_history: list[ChatMessage] = field(default_factory=list)
    winner: Winner | None = None
