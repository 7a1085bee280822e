from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

BOARD_MAX_WIDTH = 1024
BOARD_MAX_HEIGHT = 1024


def _require_non_negative_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return value


@dataclass(frozen=True, order=True)
class Coords:
    """Offset grid coordinate (x column, y row)."""

    x: int
    y: int

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Terrain:
    terrain_type: str
    level: int = 0
    exits: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.terrain_type, str) or not self.terrain_type:
            raise ValueError("terrain_type must be a non-empty string")
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ValueError("terrain.level must be an integer")
        _require_non_negative_int(self.exits, field_name="terrain.exits")

    def to_dict(self) -> dict[str, Any]:
        return {"terrain_type": self.terrain_type, "level": self.level, "exits": self.exits}


@dataclass(frozen=True)
class Hex:
    """Terrain description of one grid position."""

    level: int = 0
    terrains: tuple[Terrain, ...] = ()
    theme: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ValueError("hex.level must be an integer")
        object.__setattr__(self, "terrains", tuple(self.terrains))
        seen: set[str] = set()
        for terrain in self.terrains:
            if not isinstance(terrain, Terrain):
                raise ValueError("hex.terrains must contain Terrain records")
            if terrain.terrain_type in seen:
                raise ValueError(f"duplicate terrain type in hex: {terrain.terrain_type}")
            seen.add(terrain.terrain_type)
        if self.theme is not None and not isinstance(self.theme, str):
            raise ValueError("hex.theme must be a string when present")

    def get_terrain(self, terrain_type: str) -> Terrain | None:
        for terrain in self.terrains:
            if terrain.terrain_type == terrain_type:
                return terrain
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "level": self.level,
            "terrains": [terrain.to_dict() for terrain in self.terrains],
        }
        if self.theme is not None:
            data["theme"] = self.theme
        return data


@dataclass
class Building:
    building_id: int
    building_type: str
    name: str
    coords: list[Coords]
    current_cf: int

    def __post_init__(self) -> None:
        _require_non_negative_int(self.building_id, field_name="building.building_id")
        if not isinstance(self.building_type, str) or not self.building_type:
            raise ValueError("building.building_type must be a non-empty string")
        if not isinstance(self.name, str):
            raise ValueError("building.name must be a string")
        self.coords = list(self.coords)
        if not self.coords:
            raise ValueError("building.coords must contain at least one coordinate")
        for coords in self.coords:
            if not isinstance(coords, Coords):
                raise ValueError("building.coords must contain Coords values")
        _require_non_negative_int(self.current_cf, field_name="building.current_cf")

    def to_dict(self) -> dict[str, Any]:
        return {
            "building_id": self.building_id,
            "building_type": self.building_type,
            "name": self.name,
            "coords": [coords.to_dict() for coords in self.coords],
            "current_cf": self.current_cf,
        }


@dataclass
class InfernoTracker:
    """Burn durations, in game turns, for one burning coordinate.

    Arrow IV inferno rounds and standard inferno fire decay independently, so
    the two counters are tracked separately.
    """

    standard_turns: int = 0
    arrow_iv_turns: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int(self.standard_turns, field_name="inferno.standard_turns")
        _require_non_negative_int(self.arrow_iv_turns, field_name="inferno.arrow_iv_turns")

    @property
    def burn_turns(self) -> int:
        return self.standard_turns + self.arrow_iv_turns

    @property
    def is_burning(self) -> bool:
        return self.burn_turns > 0

    def add(self, *, standard_turns: int = 0, arrow_iv_turns: int = 0) -> None:
        _require_non_negative_int(standard_turns, field_name="standard_turns")
        _require_non_negative_int(arrow_iv_turns, field_name="arrow_iv_turns")
        self.standard_turns += standard_turns
        self.arrow_iv_turns += arrow_iv_turns

    def new_round(self, turns: int = 1) -> None:
        _require_non_negative_int(turns, field_name="turns")
        self.standard_turns = max(0, self.standard_turns - turns)
        self.arrow_iv_turns = max(0, self.arrow_iv_turns - turns)

    def to_dict(self) -> dict[str, int]:
        return {"standard_turns": self.standard_turns, "arrow_iv_turns": self.arrow_iv_turns}


@dataclass
class Board:
    width: int
    height: int
    hexes: list[Hex]
    buildings: list[Building] = field(default_factory=list)
    infernos: dict[Coords, InfernoTracker] = field(default_factory=dict)
    roads_auto_exit: bool = False

    MAX_WIDTH = BOARD_MAX_WIDTH
    MAX_HEIGHT = BOARD_MAX_HEIGHT

    def __post_init__(self) -> None:
        _require_non_negative_int(self.width, field_name="board.width")
        _require_non_negative_int(self.height, field_name="board.height")
        if self.width > BOARD_MAX_WIDTH:
            raise ValueError(f"board.width must be <= {BOARD_MAX_WIDTH}")
        if self.height > BOARD_MAX_HEIGHT:
            raise ValueError(f"board.height must be <= {BOARD_MAX_HEIGHT}")
        self.hexes = list(self.hexes)
        if len(self.hexes) != self.width * self.height:
            raise ValueError(
                f"board.hexes must contain width*height={self.width * self.height} cells, got {len(self.hexes)}"
            )
        for index, hex_record in enumerate(self.hexes):
            if not isinstance(hex_record, Hex):
                raise ValueError(f"board.hexes[{index}] must be a Hex")
        self.buildings = list(self.buildings)
        self.roads_auto_exit = bool(self.roads_auto_exit)

        infernos: dict[Coords, InfernoTracker] = {}
        for coords, tracker in self.infernos.items():
            if not isinstance(coords, Coords):
                raise ValueError("board.infernos keys must be Coords")
            if not isinstance(tracker, InfernoTracker):
                raise ValueError("board.infernos values must be InfernoTracker records")
            if tracker.is_burning:
                infernos[coords] = tracker
        self.infernos = infernos

    @classmethod
    def create_blank(cls, width: int, height: int, *, terrain_level: int = 0) -> "Board":
        _require_non_negative_int(width, field_name="width")
        _require_non_negative_int(height, field_name="height")
        return cls(width=width, height=height, hexes=[Hex(level=terrain_level) for _ in range(width * height)])

    def contains(self, coords: Coords) -> bool:
        return 0 <= coords.x < self.width and 0 <= coords.y < self.height

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"coordinate ({x}, {y}) is outside a {self.width}x{self.height} board")
        return y * self.width + x

    def get_hex(self, x: int, y: int) -> Hex:
        return self.hexes[self._index(x, y)]

    def set_hex(self, x: int, y: int, hex_record: Hex) -> None:
        if not isinstance(hex_record, Hex):
            raise ValueError("hex_record must be a Hex")
        self.hexes[self._index(x, y)] = hex_record

    def iter_coords(self) -> Iterator[Coords]:
        """Yield every coordinate in storage order: rows outer, columns inner."""
        for y in range(self.height):
            for x in range(self.width):
                yield Coords(x, y)

    def add_building(self, building: Building) -> None:
        if not isinstance(building, Building):
            raise ValueError("building must be a Building")
        self.buildings.append(building)

    def add_inferno(self, coords: Coords, *, standard_turns: int = 0, arrow_iv_turns: int = 0) -> None:
        tracker = self.infernos.get(coords)
        if tracker is None:
            tracker = InfernoTracker()
        tracker.add(standard_turns=standard_turns, arrow_iv_turns=arrow_iv_turns)
        if tracker.is_burning:
            self.infernos[coords] = tracker

    def get_inferno(self, coords: Coords) -> InfernoTracker | None:
        return self.infernos.get(coords)

    def is_burning(self, coords: Coords) -> bool:
        tracker = self.infernos.get(coords)
        return tracker is not None and tracker.is_burning

    def get_inferno_burn_turns(self, coords: Coords) -> int:
        tracker = self.infernos.get(coords)
        return tracker.burn_turns if tracker is not None else 0

    def get_inferno_iv_burn_turns(self, coords: Coords) -> int:
        tracker = self.infernos.get(coords)
        return tracker.arrow_iv_turns if tracker is not None else 0

    def remove_inferno(self, coords: Coords) -> bool:
        return self.infernos.pop(coords, None) is not None

    def new_round(self) -> None:
        for coords in list(self.infernos):
            tracker = self.infernos[coords]
            tracker.new_round()
            if not tracker.is_burning:
                del self.infernos[coords]

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "roads_auto_exit": self.roads_auto_exit,
            "hexes": [hex_record.to_dict() for hex_record in self.hexes],
            "buildings": [building.to_dict() for building in self.buildings],
            "infernos": [
                {"coords": coords.to_dict(), "tracker": self.infernos[coords].to_dict()}
                for coords in sorted(self.infernos)
            ],
        }
