from __future__ import annotations

from typing import List, Optional, Tuple

from tictactoe.shared.constants import BOARD_SIZE, MARK_EMPTY, MARKS
from tictactoe.shared.models import Outcome
from tictactoe.server.game.exceptions import CellOccupied, CellOutOfRange

# 检查顺序固定：三行、三列、两条对角线
WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Board:
    """
    3x3 棋盘，按行优先存储 9 个格子。

    空格为 None，其余为落子玩家的编号（0 或 1）。不做任何 I/O。
    """

    def __init__(self):
        self.cells: List[Optional[int]] = [None] * BOARD_SIZE

    @classmethod
    def from_string(cls, text: str) -> "Board":
        """由 serialize() 的 9 字符形式还原棋盘"""
        if len(text) != BOARD_SIZE:
            raise ValueError(f"board must have {BOARD_SIZE} cells, got {len(text)}")
        board = cls()
        for i, ch in enumerate(text):
            if ch == MARK_EMPTY:
                continue
            if ch not in MARKS:
                raise ValueError(f"unknown mark {ch!r} at {i}")
            board.cells[i] = MARKS.index(ch)
        return board

    def __getitem__(self, index: int) -> Optional[int]:
        return self.cells[index]

    def apply_move(self, index: int, player: int) -> None:
        """在 index 处落下 player 的棋子；越界或已占用时抛出 IllegalMove"""
        if not isinstance(index, int) or not 0 <= index < BOARD_SIZE:
            raise CellOutOfRange(index)
        if self.cells[index] is not None:
            raise CellOccupied(index)
        self.cells[index] = player

    def evaluate(self) -> Outcome:
        for a, b, c in WIN_LINES:
            mark = self.cells[a]
            if mark is not None and mark == self.cells[b] == self.cells[c]:
                return Outcome.win(mark)
        if self.is_full():
            return Outcome.draw()
        return Outcome.cont()

    def is_full(self) -> bool:
        return all(cell is not None for cell in self.cells)

    def empty_cells(self) -> List[int]:
        return [i for i, cell in enumerate(self.cells) if cell is None]

    def reset(self) -> None:
        for i in range(BOARD_SIZE):
            self.cells[i] = None

    def serialize(self) -> str:
        return "".join(MARK_EMPTY if cell is None else MARKS[cell] for cell in self.cells)

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return f"Board({self.serialize()!r})"
