from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from ..config import Config
from .errors import (
    GameInProgress,
    InsufficientPlayers,
    InvalidPayload,
    KillOnCooldown,
    NotHost,
    PreconditionUnmet,
    RoomNotFound,
)
from .map import GameMap
from .models import SKIP, Body, ChatMessage, Player, Room, Winner
from .registry import RoomRegistry
from .rules import evaluate_winner, impostor_count, tally_votes, within


logger = logging.getLogger(__name__)


@dataclass
class MeetingResult:
    room: Room
    ejected: Player | None
    tie: bool
    counts: dict[str, int]
    winner: Winner | None
    meeting_id: int = 0


@dataclass
class Departure:
    room: Room
    player: Player
    room_closed: bool
    winner: Winner | None = None
    meeting_result: MeetingResult | None = None


def validate_name(name: Any) -> str:
    n = name.strip() if isinstance(name, str) else ""
    if not n or len(n) > Config.NAME_MAX_LEN:
        raise InvalidPayload("Please enter a name (max 16 characters)")
    if "<" in n or ">" in n:
        raise InvalidPayload("Name contains invalid characters")
    for ch in n:
        if ord(ch) < 32:
            raise InvalidPayload("Name contains invalid characters")
    return n


def _acting(registry: RoomRegistry, player_id: str) -> tuple[Room, Player]:
    room = registry.find_room_by_player(player_id)
    if room is None:
        raise PreconditionUnmet("not in a room")
    return room, room.players[player_id]


def _require(condition: bool, reason: str) -> None:
    if not condition:
        raise PreconditionUnmet(reason)


def _settle(room: Room) -> Winner | None:
    winner = evaluate_winner(room)
    if winner:
        room.phase = "ended"
        room.winner = winner
        room.votes = {}
        room.voting_ends_at_ms = None
        logger.info("Room %s: %s win", room.code, winner)
    return winner


# --- Room lifecycle ---


def create_room(registry: RoomRegistry, player_id: str, name: Any) -> Room:
    host_name = validate_name(name)
    with registry.lock:
        if registry.find_room_by_player(player_id):
            raise InvalidPayload("Already in a room")
        return registry.create_room(player_id, host_name)


def join_room(registry: RoomRegistry, code: Any, player_id: str, name: Any) -> tuple[Room, Player]:
    player_name = validate_name(name)
    room_code = str(code or "").strip()
    if not room_code:
        raise RoomNotFound()
    with registry.lock:
        if registry.find_room_by_player(player_id):
            raise InvalidPayload("Already in a room")
        player = registry.join_room(room_code, player_id, player_name)
        return registry.get_room(room_code), player


def start_game(registry: RoomRegistry, player_id: str) -> Room:
    with registry.lock:
        room = registry.find_room_by_player(player_id)
        if room is None:
            raise RoomNotFound()
        if room.host_id != player_id:
            raise NotHost()
        if room.phase in ("playing", "meeting"):
            raise GameInProgress()
        if len(room.players) < Config.MIN_PLAYERS:
            raise InsufficientPlayers()

        game_map = registry.map
        players = list(room.players.values())
        registry.rng.shuffle(players)

        impostors = impostor_count(len(players), Config.IMPOSTOR_DIVISOR)
        # Per-player draw without replacement; sets may overlap across players.
        per_player = min(Config.TASKS_PER_PLAYER, len(game_map.task_catalog))

        for i, p in enumerate(players):
            p.role = "impostor" if i < impostors else "crewmate"
            p.alive = True
            p.tasks = registry.rng.sample(game_map.task_catalog, per_player) if p.role == "crewmate" else []
            p.tasks_completed = 0
            p.completed_task_indexes = set()
            p.x, p.y = game_map.spawn_point(i, len(players))

        room.phase = "playing"
        room.winner = None
        room.total_tasks = sum(len(p.tasks) for p in players)
        room.completed_tasks = 0
        room.dead_players = set()
        room.bodies = []
        room.votes = {}
        room.chat_history = []
        room.kill_cooldowns = {}
        room.meeting_caller = None
        room.meeting_reason = None
        room.voting_ends_at_ms = None
        room.resume_at_ms = None

        logger.info(
            "Room %s: game started with %d players (%d impostors, %d tasks)",
            room.code,
            len(players),
            impostors,
            room.total_tasks,
        )
        return room


def disconnect_player(registry: RoomRegistry, player_id: str) -> Departure | None:
    with registry.lock:
        removed = registry.remove_player(player_id)
        if removed is None:
            return None
        room, player = removed
        departure = Departure(room=room, player=player, room_closed=not room.players)
        if departure.room_closed:
            return departure

        room.votes.pop(player_id, None)
        room.votes = {v: t for v, t in room.votes.items() if t != player_id}

        if room.phase in ("playing", "meeting"):
            departure.winner = _settle(room)

        if room.phase == "meeting" and _all_alive_voted(room):
            departure.meeting_result = _resolve_locked(registry, room)

        return departure


# --- Actions ---


def move_player(registry: RoomRegistry, player_id: str, x: Any, y: Any) -> tuple[Room, Player]:
    with registry.lock:
        room, player = _acting(registry, player_id)
        _require(room.phase == "playing", "not playing")
        _require(player.alive, "dead players cannot move")
        for v in (x, y):
            _require(isinstance(v, (int, float)) and not isinstance(v, bool), "bad coordinates")
            _require(math.isfinite(v), "bad coordinates")

        game_map: GameMap = registry.map
        nx, ny = game_map.clamp(float(x), float(y))
        _require(not game_map.collides(nx, ny), "blocked by wall")

        player.x, player.y = nx, ny
        return room, player


def complete_task(registry: RoomRegistry, player_id: str, task_index: Any) -> tuple[Room, Player, Winner | None]:
    with registry.lock:
        room, player = _acting(registry, player_id)
        _require(isinstance(task_index, int) and not isinstance(task_index, bool), "bad task index")
        _require(0 <= task_index < len(player.tasks), "bad task index")
        _require(task_index not in player.completed_task_indexes, "task already done")
        _require(room.phase == "playing", "not playing")
        _require(player.alive, "dead")
        _require(player.role == "crewmate", "only crewmates do tasks")

        task = player.tasks[task_index]
        _require(within(player.x, player.y, task.x, task.y, Config.PROXIMITY_RADIUS), "too far from task")

        player.completed_task_indexes.add(task_index)
        player.tasks_completed += 1
        room.completed_tasks += 1
        return room, player, _settle(room)


def kill_player(
    registry: RoomRegistry, killer_id: str, target_id: Any
) -> tuple[Room, Player, Body, Winner | None]:
    with registry.lock:
        room, killer = _acting(registry, killer_id)
        _require(room.phase == "playing", "not playing")
        _require(killer.alive and killer.role == "impostor", "not an alive impostor")

        target = room.players.get(target_id) if isinstance(target_id, str) else None
        _require(target is not None and target.id != killer.id, "bad target")
        _require(target.alive, "target already dead")
        _require(target.role != "impostor", "cannot kill another impostor")

        now = registry.clock()
        last_kill = room.kill_cooldowns.get(killer.id)
        cooldown_ms = Config.KILL_COOLDOWN_SEC * 1000
        if last_kill is not None and now - last_kill < cooldown_ms:
            raise KillOnCooldown(math.ceil((cooldown_ms - (now - last_kill)) / 1000))

        _require(within(killer.x, killer.y, target.x, target.y, Config.PROXIMITY_RADIUS), "too far")

        target.alive = False
        room.dead_players.add(target.id)
        body = Body(
            player_id=target.id,
            name=target.name,
            x=target.x,
            y=target.y,
            zone=registry.map.zone_at(target.x, target.y),
        )
        room.bodies.append(body)
        room.kill_cooldowns[killer.id] = now
        logger.info("Room %s: %s was killed", room.code, target.name)
        return room, target, body, _settle(room)


def _start_meeting(registry: RoomRegistry, room: Room, caller: Player, reason: str) -> Room:
    room.phase = "meeting"
    room.meeting_id += 1
    room.meeting_caller = caller.name
    room.meeting_reason = reason
    room.votes = {}
    room.chat_history = []
    room.resume_at_ms = None
    room.voting_ends_at_ms = registry.clock() + Config.VOTING_DURATION_SEC * 1000
    logger.info("Room %s: meeting %d called by %s (%s)", room.code, room.meeting_id, caller.name, reason)
    return room


def report_body(registry: RoomRegistry, player_id: str) -> Room:
    with registry.lock:
        room, player = _acting(registry, player_id)
        _require(room.phase == "playing", "not playing")
        _require(player.alive, "dead")
        near = any(within(player.x, player.y, b.x, b.y, Config.PROXIMITY_RADIUS) for b in room.bodies)
        _require(near, "no body in range")
        return _start_meeting(registry, room, player, "body")


def call_emergency_meeting(registry: RoomRegistry, player_id: str) -> Room:
    with registry.lock:
        room, player = _acting(registry, player_id)
        _require(room.phase == "playing", "not playing")
        _require(player.alive, "dead")
        return _start_meeting(registry, room, player, "emergency")


def _alive_ids(room: Room) -> set[str]:
    return {pid for pid, p in room.players.items() if p.alive}


def _all_alive_voted(room: Room) -> bool:
    alive = _alive_ids(room)
    return bool(alive) and alive.issubset(room.votes.keys())


def cast_vote(
    registry: RoomRegistry, voter_id: str, target: Any
) -> tuple[Room, Player, MeetingResult | None]:
    """Record a vote; resolves the meeting once every alive player has voted."""
    with registry.lock:
        room, voter = _acting(registry, voter_id)
        _require(room.phase == "meeting", "no meeting")
        _require(voter.alive, "dead players cannot vote")
        _require(isinstance(target, str), "bad target")
        if target != SKIP:
            candidate = room.players.get(target)
            _require(candidate is not None and candidate.alive, "bad target")

        room.votes[voter_id] = target
        result = _resolve_locked(registry, room) if _all_alive_voted(room) else None
        return room, voter, result


def _resolve_locked(registry: RoomRegistry, room: Room) -> MeetingResult:
    # Only live, present voters and targets count.
    alive = _alive_ids(room)
    votes = {v: t for v, t in room.votes.items() if v in alive and (t == SKIP or t in alive)}
    tally = tally_votes(votes)

    ejected = None
    if tally.ejected_id:
        ejected = room.players[tally.ejected_id]
        ejected.alive = False
        room.dead_players.add(ejected.id)

    room.phase = "playing"
    room.bodies = []
    room.votes = {}
    room.chat_history = []
    room.meeting_caller = None
    room.meeting_reason = None
    room.voting_ends_at_ms = None
    room.resume_at_ms = registry.clock() + int(Config.RESUME_DELAY_SEC * 1000)

    logger.info(
        "Room %s: meeting %d resolved (%s)",
        room.code,
        room.meeting_id,
        "tie" if tally.tie else (ejected.name if ejected else "no ejection"),
    )
    return MeetingResult(
        room=room,
        ejected=ejected,
        tie=tally.tie,
        counts=tally.counts,
        winner=_settle(room),
        meeting_id=room.meeting_id,
    )


def resolve_meeting(registry: RoomRegistry, code: str, meeting_id: int | None = None) -> MeetingResult | None:
    """Force resolution, e.g. when the voting window elapses.

    Returns None if the room is gone or the given meeting already resolved.
    """
    with registry.lock:
        room = registry.get_room(code)
        if room is None or room.phase != "meeting":
            return None
        if meeting_id is not None and meeting_id != room.meeting_id:
            return None
        return _resolve_locked(registry, room)


def finish_resume(registry: RoomRegistry, code: str, meeting_id: int) -> Room | None:
    """End the post-vote pause opened by ``meeting_id``.

    Returns None if the room is gone or a later meeting has taken over.
    """
    with registry.lock:
        room = registry.get_room(code)
        if room is None or room.meeting_id != meeting_id:
            return None
        room.resume_at_ms = None
        return room


def send_chat(registry: RoomRegistry, player_id: str, text: Any) -> tuple[Room, ChatMessage]:
    with registry.lock:
        room, player = _acting(registry, player_id)
        _require(room.phase == "meeting", "chat only during meetings")
        _require(player.alive, "dead")
        _require(isinstance(text, str), "bad message")
        message = text.strip()[: Config.CHAT_MAX_LEN]
        _require(bool(message), "empty message")

        msg = ChatMessage(sender_id=player.id, sender=player.name, message=message, timestamp=registry.clock())
        room.chat_history.append(msg)
        if len(room.chat_history) > Config.CHAT_HISTORY_LIMIT:
            room.chat_history = room.chat_history[-Config.CHAT_HISTORY_LIMIT:]
        return room, msg


# --- Payloads ---


def roster_payload(registry: RoomRegistry, room: Room) -> dict:
    with registry.lock:
        return {
            "players": [
                {"id": p.id, "name": p.name, "isHost": p.id == room.host_id}
                for p in room.players.values()
            ]
        }


def body_payload(body: Body) -> dict:
    return {"playerId": body.player_id, "name": body.name, "x": body.x, "y": body.y, "room": body.zone}


def room_public_state(registry: RoomRegistry, room: Room) -> dict:
    # Roles stay private; each client learns its own from gameStarted.
    with registry.lock:
        return {
            "phase": room.phase,
            "players": [
                {
                    "id": p.id,
                    "name": p.name,
                    "x": p.x,
                    "y": p.y,
                    "alive": p.alive,
                    "isHost": p.id == room.host_id,
                }
                for p in room.players.values()
            ],
            "bodies": [body_payload(b) for b in room.bodies],
            "totalTasks": room.total_tasks,
            "completedTasks": room.completed_tasks,
        }


def live_state(registry: RoomRegistry, room: Room) -> dict | None:
    """State for the periodic push, or None while the room sits in a post-vote pause."""
    with registry.lock:
        if room.resume_at_ms is not None:
            return None
        return room_public_state(registry, room)


def game_started_payload(registry: RoomRegistry, player: Player) -> dict:
    map_payload = registry.map.to_payload()
    return {
        "role": player.role,
        "tasks": [{"name": t.name, "room": t.room, "x": t.x, "y": t.y} for t in player.tasks],
        "mapWalls": map_payload["walls"],
        "mapRooms": map_payload["rooms"],
    }


def meeting_payload(registry: RoomRegistry, room: Room) -> dict:
    with registry.lock:
        return {
            "caller": room.meeting_caller,
            "reason": room.meeting_reason,
            "alivePlayers": [{"id": p.id, "name": p.name} for p in room.players.values() if p.alive],
            "votingTimeMs": Config.VOTING_DURATION_SEC * 1000,
        }


def voting_payload(registry: RoomRegistry, result: MeetingResult) -> dict:
    with registry.lock:
        ejected = None
        if result.ejected:
            ejected = {"id": result.ejected.id, "name": result.ejected.name, "role": result.ejected.role}
        return {"ejected": ejected, "tie": result.tie, "votes": dict(result.counts)}


def chat_payload(msg: ChatMessage) -> dict:
    return {"sender": msg.sender, "message": msg.message, "timestamp": msg.timestamp}
