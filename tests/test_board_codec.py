import io
import xml.etree.ElementTree as ElementTree

import pytest

from hexboard.content.board_codec import BoardCodec, decode_board, encode_board
from hexboard.content.document import ElementNode, parse_document
from hexboard.content.errors import InvalidArgumentError, InvalidStructureError
from hexboard.sim.board import BOARD_MAX_WIDTH, Board, Building, Coords, Hex, InfernoTracker, Terrain


def _encode(board: Board) -> str:
    sink = io.StringIO()
    encode_board(board, sink)
    return sink.getvalue()


def _decode(text: str) -> Board:
    return decode_board(parse_document(text))


def _grid_document(width: int, height: int, hex_count: int, extra: str = "") -> str:
    hexes = '<hex level="0"/>' * hex_count
    return (
        '<board version="1.0">'
        f'<boardData width="{width}" height="{height}">{hexes}</boardData>'
        f"{extra}"
        "</board>"
    )


def _sample_board() -> Board:
    board = Board(
        width=3,
        height=2,
        hexes=[
            Hex(level=0, terrains=(Terrain("woods", level=1),)),
            Hex(level=1),
            Hex(level=2, theme="snow"),
            Hex(level=0, terrains=(Terrain("road", exits=9), Terrain("pavement"))),
            Hex(level=-1, terrains=(Terrain("water", level=2),)),
            Hex(level=0),
        ],
        roads_auto_exit=True,
    )
    board.add_building(
        Building(building_id=4, building_type="medium", name="Depot", coords=[Coords(1, 1), Coords(2, 1)], current_cf=40)
    )
    board.add_building(Building(building_id=1, building_type="light", name="", coords=[Coords(0, 0)], current_cf=15))
    board.add_inferno(Coords(1, 0), standard_turns=3)
    board.add_inferno(Coords(2, 1), arrow_iv_turns=2, standard_turns=1)
    board.add_inferno(Coords(0, 1), arrow_iv_turns=4)
    return board


def test_two_by_one_board_with_single_standard_inferno() -> None:
    board = Board(width=2, height=1, hexes=[Hex(), Hex(level=1)])
    board.add_inferno(Coords(1, 0), standard_turns=3)

    text = _encode(board)

    assert text == (
        '<board version="1.0">'
        '<boardData width="2" height="1" roadsAutoExit="false">'
        '<hex level="0"/><hex level="1"/>'
        "</boardData>"
        "<infernos>"
        '<inferno><coords x="1" y="0"/><standard turns="3"/></inferno>'
        "</infernos>"
        "</board>"
    )
    decoded = _decode(text)
    assert decoded == board
    assert decoded.get_inferno(Coords(1, 0)) == InfernoTracker(standard_turns=3, arrow_iv_turns=0)


def test_round_trip_preserves_cells_buildings_and_infernos() -> None:
    board = _sample_board()

    decoded = _decode(_encode(board))

    assert decoded == board
    assert decoded.roads_auto_exit is True
    assert decoded.get_hex(2, 0).theme == "snow"
    assert [building.building_id for building in decoded.buildings] == [4, 1]
    assert decoded.get_inferno_iv_burn_turns(Coords(2, 1)) == 2
    assert decoded.get_inferno_burn_turns(Coords(2, 1)) == 3


def test_encoder_emits_hexes_rows_outer_columns_inner() -> None:
    width, height = 3, 2
    hexes = [Hex(level=y * 10 + x) for y in range(height) for x in range(width)]
    board = Board(width=width, height=height, hexes=hexes)

    root = ElementTree.fromstring(_encode(board))
    levels = [int(node.get("level")) for node in root.find("boardData").findall("hex")]

    assert levels == [0, 1, 2, 10, 11, 12]


def test_encoder_omits_empty_buildings_and_infernos() -> None:
    board = Board.create_blank(2, 2)

    root = ElementTree.fromstring(_encode(board))

    assert root.get("version") == "1.0"
    assert [child.tag for child in root] == ["boardData"]


def test_encoder_omits_zero_arrow_iv_duration() -> None:
    board = Board.create_blank(1, 1)
    board.add_inferno(Coords(0, 0), arrow_iv_turns=0, standard_turns=5)

    root = ElementTree.fromstring(_encode(board))
    inferno = root.find("infernos/inferno")

    assert [child.tag for child in inferno] == ["coords", "standard"]
    assert inferno.find("standard").get("turns") == "5"


def test_encoder_omits_zero_standard_duration() -> None:
    board = Board.create_blank(1, 1)
    board.add_inferno(Coords(0, 0), arrow_iv_turns=2)

    root = ElementTree.fromstring(_encode(board))
    inferno = root.find("infernos/inferno")

    assert [child.tag for child in inferno] == ["coords", "arrowiv"]
    assert inferno.find("arrowiv").get("turns") == "2"


def test_encoder_writes_buildings_in_insertion_order() -> None:
    root = ElementTree.fromstring(_encode(_sample_board()))

    assert [node.get("id") for node in root.findall("buildings/building")] == ["4", "1"]


def test_encoder_rejects_missing_arguments_before_writing() -> None:
    sink = io.StringIO()

    with pytest.raises(InvalidArgumentError, match="board"):
        encode_board(None, sink)
    with pytest.raises(InvalidArgumentError, match="sink"):
        encode_board(Board.create_blank(1, 1), None)
    assert sink.getvalue() == ""


def test_encoder_propagates_sink_write_failures() -> None:
    class BrokenSink:
        def write(self, text: str) -> int:
            raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        encode_board(Board.create_blank(1, 1), BrokenSink())


@pytest.mark.parametrize("hex_count", [5, 7])
def test_decoder_requires_exact_cell_count(hex_count: int) -> None:
    with pytest.raises(InvalidStructureError, match="hexes"):
        _decode(_grid_document(3, 2, hex_count))


def test_decoder_accepts_exact_cell_count() -> None:
    board = _decode(_grid_document(3, 2, 6))

    assert (board.width, board.height) == (3, 2)
    assert len(board.hexes) == 6


def test_decoder_ignores_non_hex_children_of_board_data() -> None:
    text = (
        '<board version="1.0"><boardData width="1" height="1">'
        '<note text="ignored"/><hex level="3"/>'
        "</boardData></board>"
    )

    assert _decode(text).get_hex(0, 0).level == 3


def test_decoder_rejects_width_over_maximum() -> None:
    width = BOARD_MAX_WIDTH + 1

    with pytest.raises(InvalidStructureError, match="width"):
        _decode(_grid_document(width, 1, width))


@pytest.mark.parametrize(
    ("attributes", "message"),
    [
        ('width="-1" height="1"', "width"),
        ('width="1" height="-2"', "height"),
        ('width="one" height="1"', "width"),
        ('width="1" height="1.5"', "height"),
        ('height="1"', "width"),
        ('width="1"', "height"),
    ],
)
def test_decoder_rejects_bad_dimension_attributes(attributes: str, message: str) -> None:
    text = f'<board version="1.0"><boardData {attributes}><hex/></boardData></board>'

    with pytest.raises(InvalidStructureError, match=message):
        _decode(text)


def test_decoder_accepts_empty_grid() -> None:
    board = _decode(_grid_document(0, 0, 0))

    assert (board.width, board.height, board.hexes) == (0, 0, [])


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("TRUE", True), ("true", True), (None, False), ("false", False), ("maybe", False)],
)
def test_decoder_parses_roads_auto_exit_permissively(raw, expected: bool) -> None:
    attribute = "" if raw is None else f' roadsAutoExit="{raw}"'
    text = f'<board version="1.0"><boardData width="1" height="1"{attribute}><hex/></boardData></board>'

    assert _decode(text).roads_auto_exit is expected


def test_decoder_ignores_unknown_elements() -> None:
    text = _grid_document(1, 1, 1, extra='<weather kind="rain"><cloud/></weather>')

    board = _decode(text)

    assert board == Board.create_blank(1, 1)


def test_decoder_accepts_grid_data_alias() -> None:
    text = '<board version="1.0"><gridData width="1" height="1"><hex level="2"/></gridData></board>'

    assert _decode(text).get_hex(0, 0).level == 2


def test_decoder_rejects_duplicate_board_data() -> None:
    text = (
        '<board version="1.0">'
        '<boardData width="1" height="1"><hex/></boardData>'
        '<boardData width="1" height="1"><hex/></boardData>'
        "</board>"
    )

    with pytest.raises(InvalidStructureError, match="more than one"):
        _decode(text)


def test_decoder_requires_board_data() -> None:
    with pytest.raises(InvalidStructureError, match="no 'boardData'"):
        _decode('<board version="1.0"><buildings/></board>')


def test_decoder_rejects_wrong_root_and_missing_node() -> None:
    with pytest.raises(InvalidStructureError, match="root"):
        _decode('<map><boardData width="0" height="0"/></map>')
    with pytest.raises(InvalidArgumentError):
        decode_board(None)


def test_decoder_reads_both_inferno_durations() -> None:
    extra = (
        "<infernos>"
        '<inferno><coords x="0" y="0"/><arrowiv turns="2"/><standard turns="4"/></inferno>'
        "</infernos>"
    )

    board = _decode(_grid_document(1, 1, 1, extra=extra))

    assert board.infernos == {Coords(0, 0): InfernoTracker(standard_turns=4, arrow_iv_turns=2)}


def test_decoder_skips_inferno_without_coords_or_burn_time() -> None:
    extra = (
        "<infernos>"
        '<inferno><standard turns="4"/></inferno>'
        '<inferno><coords x="1" y="0"/></inferno>'
        '<inferno><coords x="0" y="0"/><standard turns="1"/></inferno>'
        "</infernos>"
    )

    board = _decode(_grid_document(2, 1, 2, extra=extra))

    assert list(board.infernos) == [Coords(0, 0)]


def test_decoder_rejects_duplicate_inferno_coords() -> None:
    extra = (
        "<infernos>"
        '<inferno><coords x="0" y="0"/><standard turns="1"/></inferno>'
        '<inferno><coords x="0" y="0"/><arrowiv turns="1"/></inferno>'
        "</infernos>"
    )

    with pytest.raises(InvalidStructureError, match="duplicate inferno"):
        _decode(_grid_document(1, 1, 1, extra=extra))


def test_decoder_allows_burning_entry_after_skipped_entry_for_same_coords() -> None:
    extra = (
        "<infernos>"
        '<inferno><coords x="0" y="0"/></inferno>'
        '<inferno><coords x="0" y="0"/><arrowiv turns="2"/></inferno>'
        "</infernos>"
    )

    board = _decode(_grid_document(1, 1, 1, extra=extra))

    assert board.infernos == {Coords(0, 0): InfernoTracker(arrow_iv_turns=2)}


@pytest.mark.parametrize("coords", ['x="99" y="0"', 'x="0" y="1"', 'x="-1" y="0"'])
def test_decoder_rejects_inferno_outside_board(coords: str) -> None:
    extra = f'<infernos><inferno><coords {coords}/><standard turns="2"/></inferno></infernos>'

    with pytest.raises(InvalidStructureError, match="outside a 2x1 board"):
        _decode(_grid_document(2, 1, 2, extra=extra))


def test_decoder_checks_inferno_bounds_when_infernos_precede_board_data() -> None:
    text = (
        '<board version="1.0">'
        '<infernos><inferno><coords x="2" y="0"/><standard turns="1"/></inferno></infernos>'
        '<boardData width="2" height="1"><hex/><hex/></boardData>'
        "</board>"
    )

    with pytest.raises(InvalidStructureError, match="outside"):
        _decode(text)


@pytest.mark.parametrize(("flag", "expected"), [(False, 'roadsAutoExit="false"'), (True, 'roadsAutoExit="true"')])
def test_encoder_writes_roads_auto_exit_once_in_lowercase(flag: bool, expected: str) -> None:
    board = Board.create_blank(1, 1)
    board.roads_auto_exit = flag

    text = _encode(board)

    assert text.count("roadsAutoExit=") == 1
    assert expected in text
    assert _decode(text).roads_auto_exit is flag


@pytest.mark.parametrize("turns", ['turns="-1"', 'turns="x"', ""])
def test_decoder_rejects_bad_inferno_turns(turns: str) -> None:
    extra = f'<infernos><inferno><coords x="0" y="0"/><standard {turns}/></inferno></infernos>'

    with pytest.raises(InvalidStructureError, match="standard"):
        _decode(_grid_document(1, 1, 1, extra=extra))


def test_decoder_passes_context_to_leaf_codecs() -> None:
    seen = []

    class RecordingHexCodec:
        def encode(self, value: Hex, sink) -> None:
            sink.write('<hex level="%d"/>' % value.level)

        def decode(self, node, context) -> Hex:
            seen.append(context)
            return Hex(level=int(node.attribute("level")))

    codec = BoardCodec(hex_codec=RecordingHexCodec())
    context = object()

    board = codec.decode(ElementNode(ElementTree.fromstring(_grid_document(2, 1, 2))), context)

    assert board == Board.create_blank(2, 1)
    assert seen == [context, context]
