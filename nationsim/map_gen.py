"""Terrain generation for Nationsim: smoothed-noise grid over the world map."""
from __future__ import annotations
import random
from collections import Counter
from enum import Enum


class Terrain(str, Enum):
    WATER = "water"
    PLAINS = "plains"
    FOREST = "forest"
    MOUNTAINS = "mountains"
    DESERT = "desert"


TERRAIN_INFO = {
    #                    name         fertility  habitability
    Terrain.WATER:     ("Water",      0.0,       0.0),
    Terrain.PLAINS:    ("Plains",     0.8,       0.9),
    Terrain.FOREST:    ("Forest",     0.7,       0.6),
    Terrain.MOUNTAINS: ("Mountains",  0.2,       0.3),
    Terrain.DESERT:    ("Desert",     0.1,       0.2),
}

# One letter per cell in the stored grid
TERRAIN_SHORT = {
    Terrain.WATER: "W",
    Terrain.PLAINS: "P",
    Terrain.FOREST: "F",
    Terrain.MOUNTAINS: "M",
    Terrain.DESERT: "D",
}
SHORT_TERRAIN = {v: k for k, v in TERRAIN_SHORT.items()}

# Upper noise bound for each band, lowest first
NOISE_BANDS = [
    (0.3, Terrain.WATER),
    (0.5, Terrain.PLAINS),
    (0.7, Terrain.FOREST),
    (0.85, Terrain.MOUNTAINS),
]


def _smoothed_noise(cols: int, rows: int, rng: random.Random) -> list[list[float]]:
    raw = [[rng.random() for _ in range(cols)] for _ in range(rows)]
    smooth = []
    for y in range(rows):
        line = []
        for x in range(cols):
            total, count = 0.0, 0
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < cols and 0 <= ny < rows:
                        total += raw[ny][nx]
                        count += 1
            line.append(total / count)
        smooth.append(line)
    return smooth


def classify(value: float) -> Terrain:
    for bound, terrain in NOISE_BANDS:
        if value < bound:
            return terrain
    return Terrain.DESERT


def generate_terrain(cols: int, rows: int, rng: random.Random | None = None) -> list[str]:
    """Generate a ``rows`` x ``cols`` grid, one string of terrain letters per row."""
    rng = rng or random.Random()
    noise = _smoothed_noise(cols, rows, rng)
    return ["".join(TERRAIN_SHORT[classify(v)] for v in line) for line in noise]


def terrain_at(grid: list[str], col: int, row: int) -> Terrain | None:
    if not 0 <= row < len(grid) or not 0 <= col < len(grid[row]):
        return None
    return SHORT_TERRAIN.get(grid[row][col])


def describe_cell(grid: list[str], col: int, row: int) -> dict | None:
    terrain = terrain_at(grid, col, row)
    if terrain is None:
        return None
    name, fertility, habitability = TERRAIN_INFO[terrain]
    return {"terrain": terrain.value, "name": name,
            "fertility": fertility, "habitability": habitability}


def terrain_counts(grid: list[str]) -> dict[str, int]:
    counts = Counter(ch for line in grid for ch in line)
    return {t.value: counts.get(TERRAIN_SHORT[t], 0) for t in Terrain}
