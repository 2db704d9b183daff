from __future__ import annotations

import functools
import logging
from threading import Lock
from typing import Any

from flask import request
from flask_socketio import SocketIO, emit, join_room

from ..config import Config
from ..game import service
from ..game.errors import GameError
from ..game.models import Room, Winner
from ..game.registry import RoomRegistry


logger = logging.getLogger(__name__)


def _guarded(handler):
    """Report user-visible game errors to the sender; drop the rest."""

    @functools.wraps(handler)
    def wrapper(*args):
        try:
            return handler(*args)
        except GameError as exc:
            if exc.user_visible:
                emit("error", exc.message)
            else:
                logger.debug("Dropped %s from %s: %s", handler.__name__, request.sid, exc)
            return None

    return wrapper


def register_socketio_handlers(socketio: SocketIO, registry: RoomRegistry) -> None:
    broadcast_lock = Lock()
    broadcast_state = {"running": False}

    def _broadcast_room_state(room: Room) -> None:
        socketio.emit("gameState", service.room_public_state(registry, room), to=room.code)

    def _broadcast_roster(room: Room) -> None:
        socketio.emit("playersUpdate", service.roster_payload(registry, room), to=room.code)

    def _announce_winner(room: Room, winner: Winner) -> None:
        socketio.emit("gameEnded", {"winner": winner}, to=room.code)

    def _ensure_broadcast_loop() -> None:
        interval = Config.BROADCAST_INTERVAL_SEC
        if interval <= 0:
            return
        with broadcast_lock:
            if broadcast_state["running"]:
                return
            broadcast_state["running"] = True

        def _runner() -> None:
            while True:
                with broadcast_lock:
                    rooms = registry.list_rooms()
                    if not rooms:
                        broadcast_state["running"] = False
                        break
                for room in rooms:
                    state = service.live_state(registry, room)
                    if state is not None:
                        socketio.emit("gameState", state, to=room.code)
                socketio.sleep(interval)

        socketio.start_background_task(_runner)

    def _resume_after_vote(room_code: str, meeting_id: int) -> None:
        socketio.sleep(Config.RESUME_DELAY_SEC)
        room = service.finish_resume(registry, room_code, meeting_id)
        if room is None:
            return
        if room.phase == "ended" and room.winner:
            _announce_winner(room, room.winner)
        else:
            _broadcast_room_state(room)

    def _announce_vote_result(result: service.MeetingResult) -> None:
        socketio.emit("votingComplete", service.voting_payload(registry, result), to=result.room.code)
        socketio.start_background_task(_resume_after_vote, result.room.code, result.meeting_id)

    def _schedule_meeting_timeout(room: Room) -> None:
        room_code = room.code
        meeting_id = room.meeting_id

        def _runner() -> None:
            socketio.sleep(Config.VOTING_DURATION_SEC)
            # No-op if the meeting already resolved on a full vote.
            result = service.resolve_meeting(registry, room_code, meeting_id)
            if result is not None:
                logger.info("Room %s: voting window elapsed", room_code)
                _announce_vote_result(result)

        socketio.start_background_task(_runner)

    def _open_meeting(room: Room) -> None:
        socketio.emit("meetingCalled", service.meeting_payload(registry, room), to=room.code)
        _schedule_meeting_timeout(room)

    @socketio.on("connect")
    def on_connect(auth=None):
        logger.debug("Client connected: %s", request.sid)

    @socketio.on("createRoom")
    @_guarded
    def create_room(data=None):
        name = data.get("name") if isinstance(data, dict) else data
        room = service.create_room(registry, request.sid, name)

        join_room(room.code)
        emit("roomCreated", {"code": room.code, "isHost": True})
        _broadcast_roster(room)
        _ensure_broadcast_loop()

    @socketio.on("joinRoom")
    @_guarded
    def room_join(data=None):
        payload: dict[str, Any] = data if isinstance(data, dict) else {}
        name = payload.get("name") or payload.get("playerName")
        room, _player = service.join_room(registry, payload.get("code"), request.sid, name)

        join_room(room.code)
        emit("roomJoined", {"code": room.code, "isHost": room.host_id == request.sid})
        _broadcast_roster(room)
        _ensure_broadcast_loop()

    @socketio.on("startGame")
    @_guarded
    def start_game(data=None):
        room = service.start_game(registry, request.sid)

        for player in list(room.players.values()):
            socketio.emit("gameStarted", service.game_started_payload(registry, player), to=player.id)
        _broadcast_room_state(room)
        _ensure_broadcast_loop()

    @socketio.on("move")
    @_guarded
    def move(data=None):
        payload = data if isinstance(data, dict) else {}
        room, player = service.move_player(registry, request.sid, payload.get("x"), payload.get("y"))
        socketio.emit("playerMoved", {"id": player.id, "x": player.x, "y": player.y}, to=room.code)

    @socketio.on("completeTask")
    @_guarded
    def complete_task(task_index=None):
        room, player, winner = service.complete_task(registry, request.sid, task_index)
        socketio.emit(
            "taskCompleted",
            {
                "playerId": player.id,
                "taskIndex": task_index,
                "totalTasks": room.total_tasks,
                "completedTasks": room.completed_tasks,
            },
            to=room.code,
        )
        if winner:
            _announce_winner(room, winner)

    @socketio.on("kill")
    @_guarded
    def kill(target_id=None):
        room, victim, body, winner = service.kill_player(registry, request.sid, target_id)
        socketio.emit(
            "playerKilled",
            {"victimId": victim.id, "body": service.body_payload(body)},
            to=room.code,
        )
        if winner:
            _announce_winner(room, winner)

    @socketio.on("reportBody")
    @_guarded
    def report_body(data=None):
        _open_meeting(service.report_body(registry, request.sid))

    @socketio.on("emergencyMeeting")
    @_guarded
    def emergency_meeting(data=None):
        _open_meeting(service.call_emergency_meeting(registry, request.sid))

    @socketio.on("vote")
    @_guarded
    def vote(target=None):
        room, voter, result = service.cast_vote(registry, request.sid, target)
        socketio.emit("voteUpdate", {"voterName": voter.name}, to=room.code)
        if result is not None:
            _announce_vote_result(result)

    @socketio.on("chatMessage")
    @_guarded
    def chat_message(data=None):
        text = data.get("text") if isinstance(data, dict) else data
        room, msg = service.send_chat(registry, request.sid, text)
        socketio.emit("chatUpdate", service.chat_payload(msg), to=room.code)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        departure = service.disconnect_player(registry, request.sid)
        if departure is None:
            return
        logger.info("%s left room %s", departure.player.name, departure.room.code)
        if departure.room_closed:
            return

        _broadcast_roster(departure.room)
        if departure.winner:
            _announce_winner(departure.room, departure.winner)
        if departure.meeting_result is not None:
            _announce_vote_result(departure.meeting_result)
