"""
对局结果模型

Outcome 由棋盘推导而来，从不单独存储。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tictactoe.shared.constants import OUTCOME_CONTINUE, OUTCOME_DRAW, OUTCOME_WIN


class OutcomeKind(Enum):
    CONTINUE = OUTCOME_CONTINUE
    WIN = OUTCOME_WIN
    DRAW = OUTCOME_DRAW


@dataclass(frozen=True)
class Outcome:
    """棋局结果：继续 / 某方获胜 / 平局"""

    kind: OutcomeKind
    winner: Optional[int] = None

    @classmethod
    def cont(cls) -> "Outcome":
        return cls(OutcomeKind.CONTINUE)

    @classmethod
    def win(cls, player: int) -> "Outcome":
        return cls(OutcomeKind.WIN, player)

    @classmethod
    def draw(cls) -> "Outcome":
        return cls(OutcomeKind.DRAW)

    @property
    def is_terminal(self) -> bool:
        return self.kind is not OutcomeKind.CONTINUE

    def to_wire(self) -> str:
        """编码为协议中的结果字段：CONTINUE、WIN:<n> 或 DRAW"""
        if self.kind is OutcomeKind.WIN:
            return f"{OUTCOME_WIN}:{self.winner}"
        return self.kind.value

    @classmethod
    def from_wire(cls, text: str) -> "Outcome":
        """解析结果字段，非法内容抛出 ValueError"""
        text = text.strip()
        if text == OUTCOME_CONTINUE:
            return cls.cont()
        if text == OUTCOME_DRAW:
            return cls.draw()
        if text.startswith(OUTCOME_WIN + ":"):
            winner = int(text[len(OUTCOME_WIN) + 1:])
            if winner not in (0, 1):
                raise ValueError(f"winner out of range: {winner}")
            return cls.win(winner)
        raise ValueError(f"unknown outcome: {text!r}")

    def __str__(self) -> str:
        return self.to_wire()


__all__ = ["Outcome", "OutcomeKind"]
