from __future__ import annotations

import logging
from enum import Enum

from tictactoe.shared.models import Outcome
from tictactoe.server.game.board import Board
from tictactoe.server.game.exceptions import MatchNotInProgress, NotYourTurn

logger = logging.getLogger(__name__)


class MatchPhase(Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class MatchState:
    """
    对局状态机，持有棋盘、当前行棋方和阶段。

    waiting -> in_progress: 第二名玩家入座时 start()
    in_progress -> in_progress: 合法落子且结果为 CONTINUE，轮换行棋方
    in_progress -> finished: 合法落子分出胜负或平局，行棋方不再轮换
    任意阶段 -> waiting: 有玩家断开时 abort()

    本类不加锁，由调用方保证串行访问。
    """

    def __init__(self):
        self.board = Board()
        self.current_player = 0
        self.phase = MatchPhase.WAITING

    @property
    def in_progress(self) -> bool:
        return self.phase is MatchPhase.IN_PROGRESS

    @property
    def outcome(self) -> Outcome:
        return self.board.evaluate()

    def start(self) -> None:
        """开始新的一局：清空棋盘，玩家 0 先手"""
        self.board.reset()
        self.current_player = 0
        self.phase = MatchPhase.IN_PROGRESS
        logger.info("对局开始")

    def play(self, player: int, index: int) -> Outcome:
        """
        执行一步落子并返回新的结果。

        不在对局中、不是该玩家的回合或落子非法时抛出对应异常，状态不变。
        """
        if not self.in_progress:
            raise MatchNotInProgress()
        if player != self.current_player:
            raise NotYourTurn(player, self.current_player)
        self.board.apply_move(index, player)
        outcome = self.board.evaluate()
        if outcome.is_terminal:
            self.phase = MatchPhase.FINISHED
            logger.info(f"对局结束: {outcome}")
        else:
            self.current_player = 1 - self.current_player
        return outcome

    def abort(self) -> bool:
        """回到等待状态；返回中止前是否正在对局"""
        was_in_progress = self.in_progress
        self.phase = MatchPhase.WAITING
        if was_in_progress:
            logger.info("对局中止")
        return was_in_progress

    def snapshot(self) -> dict:
        return {
            "phase": self.phase.value,
            "board": self.board.serialize(),
            "current_player": self.current_player,
            "outcome": self.outcome.to_wire(),
        }
