"""游戏异常

对局层的所有拒绝都以异常表示，由网络层映射为单播的拒绝消息。
"""

from __future__ import annotations

from typing import Optional


class GameError(Exception):
    """游戏异常基类"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class IllegalMove(GameError):
    """落子位置不合法"""

    def __init__(self, message: str, index: object):
        super().__init__(message, {"index": index})
        self.index = index


class CellOutOfRange(IllegalMove):
    def __init__(self, index: object):
        super().__init__("cell index out of range", index)


class CellOccupied(IllegalMove):
    def __init__(self, index: int):
        super().__init__("cell already occupied", index)


class MatchNotInProgress(GameError):
    def __init__(self):
        super().__init__("match is not in progress")


class NotYourTurn(GameError):
    def __init__(self, player: int, current_player: int):
        super().__init__(
            "not your turn", {"player": player, "current_player": current_player}
        )
        self.player = player
        self.current_player = current_player


__all__ = [
    "GameError",
    "IllegalMove",
    "CellOutOfRange",
    "CellOccupied",
    "MatchNotInProgress",
    "NotYourTurn",
]
