"""Tests for the static map model and its collision predicate."""

import pytest

from impostor.game.map import DEFAULT_MAP, PLAYER_RADIUS, Rect


class TestRect:
    def test_distance_inside_is_zero(self):
        assert Rect(0, 0, 10, 10).distance_to(5, 5) == 0

    def test_distance_to_edge(self):
        assert Rect(0, 0, 10, 10).distance_to(15, 5) == pytest.approx(5)

    def test_distance_to_corner(self):
        assert Rect(0, 0, 10, 10).distance_to(13, 14) == pytest.approx(5)

    def test_contains(self):
        r = Rect(10, 10, 20, 20)
        assert r.contains(10, 30)
        assert not r.contains(31, 15)


class TestCollision:
    def test_point_inside_wall_collides(self):
        assert DEFAULT_MAP.collides(340, 240)

    def test_padding_counts(self):
        # Wall spans x 330-350; a radius-20 player centred 10 units away overlaps it.
        assert DEFAULT_MAP.collides(360, 240)

    def test_just_clear_of_wall(self):
        assert not DEFAULT_MAP.collides(371, 240)

    def test_open_floor(self):
        assert not DEFAULT_MAP.collides(600, 170)

    def test_doorway_is_passable(self):
        assert not DEFAULT_MAP.collides(340, 140)


class TestMapLayout:
    def test_clamp_to_extents(self):
        assert DEFAULT_MAP.clamp(-100, 5000) == (PLAYER_RADIUS, DEFAULT_MAP.height - PLAYER_RADIUS)

    def test_clamp_leaves_inner_points(self):
        assert DEFAULT_MAP.clamp(500, 400) == (500, 400)

    def test_catalog_has_eight_unique_tasks(self):
        ids = [t.catalog_id for t in DEFAULT_MAP.task_catalog]
        assert len(ids) == 8
        assert len(set(ids)) == 8

    def test_tasks_sit_in_their_rooms(self):
        for task in DEFAULT_MAP.task_catalog:
            assert DEFAULT_MAP.zone_at(task.x, task.y) == task.room
            assert not DEFAULT_MAP.collides(task.x, task.y)

    @pytest.mark.parametrize("count", range(1, 11))
    def test_spawn_ring_is_wall_free(self, count):
        for i in range(count):
            x, y = DEFAULT_MAP.spawn_point(i, count)
            assert not DEFAULT_MAP.collides(x, y)
            assert DEFAULT_MAP.zone_at(x, y) == "Cafeteria"

    def test_payload_shape(self):
        payload = DEFAULT_MAP.to_payload()
        assert len(payload["walls"]) == len(DEFAULT_MAP.walls)
        assert {"name", "x", "y", "width", "height"} <= set(payload["rooms"][0])
