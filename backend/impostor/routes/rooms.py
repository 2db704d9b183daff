from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import service

bp = Blueprint("rooms", __name__)


def _registry():
    return current_app.extensions["impostor.registry"]


@bp.get("/rooms/<code>")
def get_room(code: str):
    registry = _registry()
    room = registry.get_room(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404

    payload = service.room_public_state(registry, room)
    payload["code"] = room.code
    payload["hostId"] = room.host_id
    payload["playerCount"] = len(payload["players"])
    return jsonify(payload)


@bp.get("/map")
def get_map():
    game_map = _registry().map
    payload = game_map.to_payload()
    payload["tasks"] = [
        {"id": t.catalog_id, "name": t.name, "room": t.room, "x": t.x, "y": t.y}
        for t in game_map.task_catalog
    ]
    return jsonify(payload)
