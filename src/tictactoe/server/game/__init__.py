"""
游戏逻辑模块

实现棋盘、胜负判定与回合状态机，不涉及任何网络 I/O。
"""

from .board import WIN_LINES, Board
from .exceptions import (
    CellOccupied,
    CellOutOfRange,
    GameError,
    IllegalMove,
    MatchNotInProgress,
    NotYourTurn,
)
from .match import MatchPhase, MatchState

__all__ = [
    "WIN_LINES",
    "Board",
    "MatchPhase",
    "MatchState",
    "GameError",
    "IllegalMove",
    "CellOutOfRange",
    "CellOccupied",
    "MatchNotInProgress",
    "NotYourTurn",
]
