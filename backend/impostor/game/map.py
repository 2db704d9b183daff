from __future__ import annotations

import math
from dataclasses import dataclass

from .models import Task


PLAYER_RADIUS = 20.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    def distance_to(self, px: float, py: float) -> float:
        """Distance from a point to the closest point of this rectangle (0 inside)."""
        cx = clamp(px, self.x, self.x + self.width)
        cy = clamp(py, self.y, self.y + self.height)
        return math.hypot(px - cx, py - cy)

    def to_payload(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Zone:
    name: str
    bounds: Rect

    def to_payload(self) -> dict:
        payload = self.bounds.to_payload()
        payload["name"] = self.name
        return payload


@dataclass(frozen=True)
class GameMap:
    width: float
    height: float
    walls: tuple[Rect, ...]
    zones: tuple[Zone, ...]
    task_catalog: tuple[Task, ...]
    spawn_x: float
    spawn_y: float
    spawn_radius: float = 60.0

    def clamp(self, x: float, y: float, radius: float = PLAYER_RADIUS) -> tuple[float, float]:
        return (
            clamp(x, radius, self.width - radius),
            clamp(y, radius, self.height - radius),
        )

    def collides(self, x: float, y: float, radius: float = PLAYER_RADIUS) -> bool:
        return any(wall.distance_to(x, y) < radius for wall in self.walls)

    def zone_at(self, x: float, y: float) -> str | None:
        for zone in self.zones:
            if zone.bounds.contains(x, y):
                return zone.name
        return None

    def spawn_point(self, index: int, count: int) -> tuple[float, float]:
        # Evenly spaced ring around the spawn centre.
        count = max(1, count)
        angle = (2 * math.pi * index) / count
        return (
            round(self.spawn_x + math.cos(angle) * self.spawn_radius, 2),
            round(self.spawn_y + math.sin(angle) * self.spawn_radius, 2),
        )

    def to_payload(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "walls": [w.to_payload() for w in self.walls],
            "rooms": [z.to_payload() for z in self.zones],
        }


DEFAULT_MAP = GameMap(
    width=1200,
    height=800,
    walls=(
        # Cafeteria side walls, doorways at y 90-190
        Rect(330, 0, 20, 90),
        Rect(330, 190, 20, 100),
        Rect(850, 0, 20, 90),
        Rect(850, 190, 20, 100),
        # Upper corridor, doorways at x 120-220 / 980-1080
        Rect(0, 280, 120, 20),
        Rect(220, 280, 130, 20),
        Rect(850, 280, 130, 20),
        Rect(1080, 280, 120, 20),
        # Lower corridor
        Rect(0, 510, 120, 20),
        Rect(220, 510, 130, 20),
        Rect(850, 510, 130, 20),
        Rect(1080, 510, 120, 20),
        # Admin table
        Rect(560, 420, 80, 40),
        # Storage crates
        Rect(450, 620, 60, 60),
    ),
    zones=(
        Zone("MedBay", Rect(40, 40, 260, 220)),
        Zone("Cafeteria", Rect(400, 40, 400, 260)),
        Zone("Weapons", Rect(900, 40, 260, 220)),
        Zone("Reactor", Rect(40, 310, 260, 180)),
        Zone("Admin", Rect(450, 340, 300, 200)),
        Zone("Navigation", Rect(900, 310, 260, 180)),
        Zone("Electrical", Rect(40, 540, 260, 220)),
        Zone("Storage", Rect(400, 580, 400, 180)),
        Zone("Shields", Rect(900, 540, 260, 220)),
    ),
    task_catalog=(
        Task("wiring", "Fix Wiring", "Electrical", 150, 650),
        Task("scan", "Submit Scan", "MedBay", 160, 140),
        Task("asteroids", "Clear Asteroids", "Weapons", 1040, 140),
        Task("reactor", "Start Reactor", "Reactor", 160, 400),
        Task("upload", "Upload Data", "Admin", 600, 380),
        Task("course", "Chart Course", "Navigation", 1040, 400),
        Task("garbage", "Empty Garbage", "Storage", 650, 680),
        Task("shields", "Prime Shields", "Shields", 1040, 650),
    ),
    spawn_x=600,
    spawn_y=170,
)
