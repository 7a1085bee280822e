from __future__ import annotations

import hashlib
import json

from hexboard.sim.board import Board


def board_hash(board: Board) -> str:
    encoded = json.dumps(
        board.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
