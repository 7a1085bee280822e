from __future__ import annotations

from typing import Any, Protocol, TextIO, TypeVar

from hexboard.content.document import (
    DocumentNode,
    parse_int_attribute,
    require_attribute,
    write_empty,
    write_end,
    write_start,
)
from hexboard.content.errors import InvalidArgumentError, InvalidStructureError
from hexboard.sim.board import Building, Coords, Hex, Terrain

T = TypeVar("T")

COORDS_TAG = "coords"
HEX_TAG = "hex"
TERRAIN_TAG = "terrain"
BUILDING_TAG = "building"


class LeafCodec(Protocol[T]):
    """Encoder/decoder for a single value nested inside a board document."""

    def encode(self, value: T, sink: TextIO) -> None: ...

    def decode(self, node: DocumentNode, context: Any) -> T: ...


def _check_node(node: DocumentNode | None, tag: str) -> DocumentNode:
    if node is None:
        raise InvalidArgumentError(f"{tag} node is None")
    if node.name != tag:
        raise InvalidStructureError(f"expected a '{tag}' element, got {node.name!r}")
    return node


class CoordsCodec:
    def encode(self, value: Coords, sink: TextIO) -> None:
        if value is None:
            raise InvalidArgumentError("coords is None")
        write_empty(sink, COORDS_TAG, (("x", value.x), ("y", value.y)))

    def decode(self, node: DocumentNode, context: Any) -> Coords:
        node = _check_node(node, COORDS_TAG)
        return Coords(
            x=parse_int_attribute(node, "x", element=COORDS_TAG),
            y=parse_int_attribute(node, "y", element=COORDS_TAG),
        )


class HexCodec:
    def encode(self, value: Hex, sink: TextIO) -> None:
        if value is None:
            raise InvalidArgumentError("hex is None")
        attributes = (("level", value.level), ("theme", value.theme))
        if not value.terrains:
            write_empty(sink, HEX_TAG, attributes)
            return
        write_start(sink, HEX_TAG, attributes)
        for terrain in value.terrains:
            write_empty(
                sink,
                TERRAIN_TAG,
                (("type", terrain.terrain_type), ("level", terrain.level), ("exits", terrain.exits)),
            )
        write_end(sink, HEX_TAG)

    def decode(self, node: DocumentNode, context: Any) -> Hex:
        node = _check_node(node, HEX_TAG)
        level = parse_int_attribute(node, "level", element=HEX_TAG, default=0)
        terrains: list[Terrain] = []
        for child in node.children():
            if child.name != TERRAIN_TAG:
                continue
            terrain_type = require_attribute(child, "type", element=TERRAIN_TAG)
            terrain_level = parse_int_attribute(child, "level", element=TERRAIN_TAG, default=0)
            exits = parse_int_attribute(child, "exits", element=TERRAIN_TAG, default=0)
            try:
                terrains.append(Terrain(terrain_type=terrain_type, level=terrain_level, exits=exits))
            except ValueError as exc:
                raise InvalidStructureError(f"invalid terrain element: {exc}") from exc
        try:
            return Hex(level=level, terrains=tuple(terrains), theme=node.attribute("theme"))
        except ValueError as exc:
            raise InvalidStructureError(f"invalid hex element: {exc}") from exc


class BuildingCodec:
    def __init__(self, coords_codec: CoordsCodec | None = None) -> None:
        self.coords_codec = coords_codec or CoordsCodec()

    def encode(self, value: Building, sink: TextIO) -> None:
        if value is None:
            raise InvalidArgumentError("building is None")
        write_start(
            sink,
            BUILDING_TAG,
            (
                ("id", value.building_id),
                ("type", value.building_type),
                ("name", value.name),
                ("currentCF", value.current_cf),
            ),
        )
        for coords in value.coords:
            self.coords_codec.encode(coords, sink)
        write_end(sink, BUILDING_TAG)

    def decode(self, node: DocumentNode, context: Any) -> Building:
        node = _check_node(node, BUILDING_TAG)
        building_id = parse_int_attribute(node, "id", element=BUILDING_TAG)
        building_type = require_attribute(node, "type", element=BUILDING_TAG)
        current_cf = parse_int_attribute(node, "currentCF", element=BUILDING_TAG)
        coords = [
            self.coords_codec.decode(child, context)
            for child in node.children()
            if child.name == COORDS_TAG
        ]
        if not coords:
            raise InvalidStructureError(f"building {building_id} has no coords")
        try:
            return Building(
                building_id=building_id,
                building_type=building_type,
                name=node.attribute("name") or "",
                coords=coords,
                current_cf=current_cf,
            )
        except ValueError as exc:
            raise InvalidStructureError(f"invalid building element: {exc}") from exc
