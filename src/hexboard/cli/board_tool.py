from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from hexboard.content.io import load_board_xml, save_board_xml
from hexboard.sim.board import BOARD_MAX_HEIGHT, BOARD_MAX_WIDTH, Board
from hexboard.sim.hash import board_hash

logger = logging.getLogger(__name__)


def _dimension(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError("dimensions must be >= 0")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hexboard-board",
        description=(
            "Inspect, rewrite or create board XML documents "
            "(grid data + buildings + infernos)."
        ),
    )
    parser.add_argument("board_path", help="Path to a board XML document")
    parser.add_argument(
        "--new",
        nargs=2,
        type=_dimension,
        metavar=("WIDTH", "HEIGHT"),
        help=f"Write a blank WIDTHxHEIGHT board to board_path (max {BOARD_MAX_WIDTH}x{BOARD_MAX_HEIGHT})",
    )
    parser.add_argument("--rewrite", help="Decode board_path and re-encode it to this path")
    parser.add_argument("--force", action="store_true", help="Overwrite output path if it already exists")
    parser.add_argument(
        "--print-summary",
        action="store_true",
        help="Print concise dimension/hex/building/inferno summary",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _ensure_writable(path: Path, force: bool) -> None:
    if path.exists() and not force:
        raise ValueError(f"output exists: {path} (use --force to overwrite)")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    board_path = Path(args.board_path)

    try:
        if args.new is not None:
            width, height = args.new
            _ensure_writable(board_path, args.force)
            board = Board.create_blank(width, height)
            save_board_xml(board_path, board)
            output_path = board_path
        else:
            if not board_path.exists():
                raise ValueError(f"input board_path does not exist: {board_path}")
            board = load_board_xml(board_path)
            output_path = board_path
            if args.rewrite:
                output_path = Path(args.rewrite)
                _ensure_writable(output_path, args.force)
                save_board_xml(output_path, board)

        if args.print_summary:
            print(
                "summary "
                f"width={board.width} "
                f"height={board.height} "
                f"roads_auto_exit={str(board.roads_auto_exit).lower()} "
                f"hex_count={len(board.hexes)} "
                f"building_count={len(board.buildings)} "
                f"inferno_count={len(board.infernos)}"
            )

        print(f"ok board_path={output_path} board_hash={board_hash(board)}")
    except (OSError, ValueError) as exc:
        logger.debug("board tool failed", exc_info=True)
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
