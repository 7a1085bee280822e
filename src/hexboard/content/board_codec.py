"""XML encoding of a whole board: grid data, buildings and inferno registry.

Document layout::

    <board version="1.0">
      <boardData width="W" height="H" roadsAutoExit="false"> W*H hex elements </boardData>
      <buildings> building elements </buildings>
      <infernos>
        <inferno><coords x="X" y="Y"/><arrowiv turns="N"/><standard turns="N"/></inferno>
      </infernos>
    </board>

``buildings`` and ``infernos`` are omitted when empty, and each inferno
duration element is omitted when its counter is zero. Hexes are stored rows
outer, columns inner. The decoder ignores elements it does not recognise.
"""

from __future__ import annotations

from typing import Any, TextIO

from hexboard.content.document import DocumentNode, parse_bool, parse_int_attribute, write_empty, write_end, write_start
from hexboard.content.errors import InvalidArgumentError, InvalidStructureError
from hexboard.content.leaf_codecs import (
    BUILDING_TAG,
    COORDS_TAG,
    HEX_TAG,
    BuildingCodec,
    CoordsCodec,
    HexCodec,
    LeafCodec,
)
from hexboard.sim.board import BOARD_MAX_HEIGHT, BOARD_MAX_WIDTH, Board, Building, Coords, Hex, InfernoTracker

FORMAT_VERSION = "1.0"
BOARD_TAG = "board"
BOARD_DATA_TAG = "boardData"
BOARD_DATA_TAG_ALIASES = frozenset({BOARD_DATA_TAG, "gridData"})
BUILDINGS_TAG = "buildings"
INFERNOS_TAG = "infernos"
INFERNO_TAG = "inferno"
ARROW_IV_TAG = "arrowiv"
STANDARD_TAG = "standard"


class BoardCodec:
    """Encodes boards to, and decodes them from, board documents.

    Cells, buildings and coordinates are delegated to leaf codecs, which may
    be replaced. The codec keeps no per-call state and can be shared.
    """

    def __init__(
        self,
        *,
        hex_codec: LeafCodec[Hex] | None = None,
        building_codec: LeafCodec[Building] | None = None,
        coords_codec: LeafCodec[Coords] | None = None,
    ) -> None:
        self.coords_codec = coords_codec or CoordsCodec()
        self.hex_codec = hex_codec or HexCodec()
        self.building_codec = building_codec or BuildingCodec(self.coords_codec)

    def encode(self, board: Board, sink: TextIO) -> None:
        if board is None:
            raise InvalidArgumentError("board is None")
        if sink is None:
            raise InvalidArgumentError("sink is None")

        write_start(sink, BOARD_TAG, (("version", FORMAT_VERSION),))

        write_start(
            sink,
            BOARD_DATA_TAG,
            (("width", board.width), ("height", board.height), ("roadsAutoExit", board.roads_auto_exit)),
        )
        for coords in board.iter_coords():
            self.hex_codec.encode(board.get_hex(coords.x, coords.y), sink)
        write_end(sink, BOARD_DATA_TAG)

        if board.buildings:
            write_start(sink, BUILDINGS_TAG)
            for building in board.buildings:
                self.building_codec.encode(building, sink)
            write_end(sink, BUILDINGS_TAG)

        burning = [(coords, tracker) for coords, tracker in board.infernos.items() if tracker.is_burning]
        if burning:
            write_start(sink, INFERNOS_TAG)
            for coords, tracker in burning:
                self._encode_inferno(coords, tracker, sink)
            write_end(sink, INFERNOS_TAG)

        write_end(sink, BOARD_TAG)

    def _encode_inferno(self, coords: Coords, tracker: InfernoTracker, sink: TextIO) -> None:
        write_start(sink, INFERNO_TAG)
        self.coords_codec.encode(coords, sink)
        if tracker.arrow_iv_turns > 0:
            write_empty(sink, ARROW_IV_TAG, (("turns", tracker.arrow_iv_turns),))
        if tracker.standard_turns > 0:
            write_empty(sink, STANDARD_TAG, (("turns", tracker.standard_turns),))
        write_end(sink, INFERNO_TAG)

    def decode(self, node: DocumentNode, context: Any = None) -> Board:
        if node is None:
            raise InvalidArgumentError("board node is None")
        if node.name != BOARD_TAG:
            raise InvalidStructureError(f"expected a '{BOARD_TAG}' root element, got {node.name!r}")

        grid: tuple[int, int, bool, list[Hex]] | None = None
        buildings: list[Building] = []
        infernos: dict[Coords, InfernoTracker] = {}

        for child in node.children():
            name = child.name
            if name is None:
                continue
            if name in BOARD_DATA_TAG_ALIASES:
                if grid is not None:
                    raise InvalidStructureError(f"more than one '{BOARD_DATA_TAG}' element in a board")
                grid = self._decode_board_data(child, context)
            elif name == INFERNOS_TAG:
                self._decode_infernos(child, context, infernos)
            elif name == BUILDINGS_TAG:
                buildings.extend(
                    self.building_codec.decode(subnode, context)
                    for subnode in child.children()
                    if subnode.name == BUILDING_TAG
                )

        if grid is None:
            raise InvalidStructureError(f"board has no '{BOARD_DATA_TAG}' element")
        width, height, roads_auto_exit, hexes = grid

        try:
            board = Board(
                width=width,
                height=height,
                hexes=hexes,
                buildings=buildings,
                infernos=infernos,
                roads_auto_exit=roads_auto_exit,
            )
        except ValueError as exc:
            raise InvalidStructureError(f"invalid board: {exc}") from exc

        for coords in board.infernos:
            if not board.contains(coords):
                raise InvalidStructureError(
                    f"inferno coords ({coords.x}, {coords.y}) are outside a {width}x{height} board"
                )
        return board

    def _decode_board_data(self, node: DocumentNode, context: Any) -> tuple[int, int, bool, list[Hex]]:
        height = self._parse_dimension(node, "height", BOARD_MAX_HEIGHT)
        width = self._parse_dimension(node, "width", BOARD_MAX_WIDTH)
        roads_auto_exit = parse_bool(node.attribute("roadsAutoExit"))

        expected = width * height
        hexes: list[Hex | None] = [None] * expected
        count = 0
        for subnode in node.children():
            if subnode.name != HEX_TAG:
                continue
            if count == expected:
                raise InvalidStructureError(f"too many hexes in '{BOARD_DATA_TAG}': expected {expected}")
            hexes[count] = self.hex_codec.decode(subnode, context)
            count += 1
        if count < expected:
            raise InvalidStructureError(
                f"not enough hexes in '{BOARD_DATA_TAG}': expected {expected}, found {count}"
            )
        return width, height, roads_auto_exit, hexes

    @staticmethod
    def _parse_dimension(node: DocumentNode, name: str, maximum: int) -> int:
        value = parse_int_attribute(node, name, element=BOARD_DATA_TAG)
        if value < 0 or value > maximum:
            raise InvalidStructureError(f"illegal value for {BOARD_DATA_TAG}.{name}: {value} (allowed 0..{maximum})")
        return value

    def _decode_infernos(self, node: DocumentNode, context: Any, infernos: dict[Coords, InfernoTracker]) -> None:
        for subnode in node.children():
            if subnode.name != INFERNO_TAG:
                continue
            coords: Coords | None = None
            standard_turns = 0
            arrow_iv_turns = 0
            for detail in subnode.children():
                if detail.name == COORDS_TAG:
                    coords = self.coords_codec.decode(detail, context)
                elif detail.name == ARROW_IV_TAG:
                    arrow_iv_turns = self._parse_turns(detail, ARROW_IV_TAG)
                elif detail.name == STANDARD_TAG:
                    standard_turns = self._parse_turns(detail, STANDARD_TAG)

            if coords is None:
                continue
            tracker = InfernoTracker(standard_turns=standard_turns, arrow_iv_turns=arrow_iv_turns)
            if not tracker.is_burning:
                continue
            if coords in infernos:
                raise InvalidStructureError(f"duplicate inferno for coords ({coords.x}, {coords.y})")
            infernos[coords] = tracker

    @staticmethod
    def _parse_turns(node: DocumentNode, element: str) -> int:
        turns = parse_int_attribute(node, "turns", element=element)
        if turns < 0:
            raise InvalidStructureError(f"{element}.turns must be >= 0, got {turns}")
        return turns


_DEFAULT_CODEC = BoardCodec()


def encode_board(board: Board, sink: TextIO) -> None:
    _DEFAULT_CODEC.encode(board, sink)


def decode_board(node: DocumentNode, context: Any = None) -> Board:
    return _DEFAULT_CODEC.decode(node, context)
