from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from hexboard.content.board_codec import BoardCodec
from hexboard.content.document import parse_document
from hexboard.sim.board import Board

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

logger = logging.getLogger(__name__)


def encode_board_to_string(board: Board, *, codec: BoardCodec | None = None) -> str:
    sink = io.StringIO()
    (codec or BoardCodec()).encode(board, sink)
    return sink.getvalue()


def decode_board_from_string(text: str, context: Any = None, *, codec: BoardCodec | None = None) -> Board:
    return (codec or BoardCodec()).decode(parse_document(text), context)


def _write_atomic_text(path: str | Path, serialized: str) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def save_board_xml(path: str | Path, board: Board, *, codec: BoardCodec | None = None) -> None:
    serialized = XML_DECLARATION + encode_board_to_string(board, codec=codec) + "\n"
    _write_atomic_text(path, serialized)
    logger.debug("saved %dx%d board to %s", board.width, board.height, path)


def load_board_xml(path: str | Path, context: Any = None, *, codec: BoardCodec | None = None) -> Board:
    text = Path(path).read_text(encoding="utf-8")
    board = decode_board_from_string(text, context, codec=codec)
    logger.debug(
        "loaded %dx%d board from %s (%d buildings, %d infernos)",
        board.width,
        board.height,
        path,
        len(board.buildings),
        len(board.infernos),
    )
    return board
