"""
文本协议

消息格式为 ``TAG`` 或 ``TAG:payload``。帧之间没有强制分隔符：换行可有可无，
一次读取可能只含半帧，也可能含多帧，按消息标签切分。
收到的帧在边界处一次性解码为封闭的消息变体，分发逻辑只处理枚举，
不再做字符串前缀匹配。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from tictactoe.shared.constants import (
    BOARD_SIZE,
    BUFFER_SIZE,
    ENCODING,
    FRAME_SEPARATORS,
    MARK_EMPTY,
    MARKS,
    MSG_GAME_STATE,
    MSG_INVALID_MOVE,
    MSG_MOVE,
    MSG_NOT_YOUR_TURN,
    MSG_OPPONENT_DISCONNECTED,
    MSG_PLAYER,
    MSG_WAIT,
)
from tictactoe.shared.models import Outcome

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"\s*[+-]?\d+\s*")


class ProtocolError(ValueError):
    """无法解析的服务器消息"""


# ==================== 服务器 -> 客户端 ====================

class ServerMsgType(Enum):
    PLAYER = MSG_PLAYER
    GAME_STATE = MSG_GAME_STATE
    WAIT = MSG_WAIT
    NOT_YOUR_TURN = MSG_NOT_YOUR_TURN
    INVALID_MOVE = MSG_INVALID_MOVE
    OPPONENT_DISCONNECTED = MSG_OPPONENT_DISCONNECTED


@dataclass(frozen=True)
class ServerMessage:
    type: ServerMsgType
    payload: str = ""

    def encode(self) -> str:
        if self.type is ServerMsgType.OPPONENT_DISCONNECTED:
            return self.type.value
        return f"{self.type.value}:{self.payload}"

    def to_bytes(self) -> bytes:
        return encode_frame(self.encode())

    @classmethod
    def player(cls, player_index: int) -> "ServerMessage":
        # 线上编号从 1 开始
        return cls(ServerMsgType.PLAYER, str(player_index + 1))

    @classmethod
    def game_state(cls, board: str, current_player: int, outcome: Outcome) -> "ServerMessage":
        return cls(ServerMsgType.GAME_STATE, f"{board}|{current_player}|{outcome.to_wire()}")

    @classmethod
    def wait(cls, text: str) -> "ServerMessage":
        return cls(ServerMsgType.WAIT, text)

    @classmethod
    def not_your_turn(cls, text: str) -> "ServerMessage":
        return cls(ServerMsgType.NOT_YOUR_TURN, text)

    @classmethod
    def invalid_move(cls, text: str) -> "ServerMessage":
        return cls(ServerMsgType.INVALID_MOVE, text)

    @classmethod
    def opponent_disconnected(cls) -> "ServerMessage":
        return cls(ServerMsgType.OPPONENT_DISCONNECTED)


@dataclass(frozen=True)
class GameStateView:
    """GAME_STATE 负载的解析结果"""

    board: str
    current_player: int
    outcome: Outcome


def decode_server_message(line: str) -> ServerMessage:
    """解析一帧服务器消息，未知标签抛出 ProtocolError"""
    tag, sep, payload = line.partition(":")
    try:
        msg_type = ServerMsgType(tag)
    except ValueError:
        raise ProtocolError(f"unknown server tag: {tag!r}") from None
    if msg_type is ServerMsgType.OPPONENT_DISCONNECTED and sep:
        raise ProtocolError(f"unexpected payload for {tag}")
    return ServerMessage(msg_type, payload)


def parse_game_state(payload: str) -> GameStateView:
    """解析 ``<board>|<currentPlayer>|<outcome>``"""
    parts = payload.split("|")
    if len(parts) != 3:
        raise ProtocolError(f"malformed game state: {payload!r}")
    board, current, outcome = parts
    if len(board) != BOARD_SIZE or any(ch not in (MARK_EMPTY,) + MARKS for ch in board):
        raise ProtocolError(f"malformed board: {board!r}")
    try:
        current_player = int(current)
        parsed_outcome = Outcome.from_wire(outcome)
    except ValueError as e:
        raise ProtocolError(str(e)) from e
    if current_player not in (0, 1):
        raise ProtocolError(f"current player out of range: {current_player}")
    return GameStateView(board, current_player, parsed_outcome)


def parse_player_number(payload: str) -> int:
    try:
        number = int(payload)
    except ValueError:
        raise ProtocolError(f"malformed player number: {payload!r}") from None
    if number not in (1, 2):
        raise ProtocolError(f"player number out of range: {number}")
    return number


# ==================== 客户端 -> 服务器 ====================

class ClientMsgType(Enum):
    MOVE = "move"
    MALFORMED_MOVE = "malformed_move"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClientMessage:
    type: ClientMsgType
    raw: str
    cell: Optional[int] = None


def decode_client_message(line: str) -> ClientMessage:
    """解析一帧客户端消息

    ``MOVE:<n>``，n 为 0..8 的十进制整数时得到 MOVE；以 ``MOVE:`` 开头
    但负载非法时得到 MALFORMED_MOVE；其余内容为 UNKNOWN。
    """
    prefix = MSG_MOVE + ":"
    if not line.startswith(prefix):
        return ClientMessage(ClientMsgType.UNKNOWN, line)
    payload = line[len(prefix):]
    if not _INT_RE.fullmatch(payload):
        return ClientMessage(ClientMsgType.MALFORMED_MOVE, line)
    cell = int(payload)
    if not 0 <= cell < BOARD_SIZE:
        return ClientMessage(ClientMsgType.MALFORMED_MOVE, line)
    return ClientMessage(ClientMsgType.MOVE, line, cell)


def move_frame(cell: int) -> bytes:
    return encode_frame(f"{MSG_MOVE}:{cell}")


# ==================== 分帧 ====================

SERVER_TAGS = tuple(t.value for t in ServerMsgType)
CLIENT_TAGS = (MSG_MOVE,)

_SEPARATOR_RE = re.compile("[" + re.escape(FRAME_SEPARATORS) + "]+")


def encode_frame(text: str) -> bytes:
    return text.encode(ENCODING, errors="replace")


def is_complete_client_frame(frame: str) -> bool:
    """``MOVE:`` 及其前缀视为半帧，其余内容按一次读取即一帧处理"""
    return not (MSG_MOVE + ":").startswith(frame)


def is_complete_server_frame(frame: str) -> bool:
    """标签前缀、缺少负载或负载尚未解析完整的消息视为半帧"""
    try:
        msg = decode_server_message(frame)
    except ProtocolError:
        return not any(tag.startswith(frame) for tag in SERVER_TAGS)
    if msg.type is ServerMsgType.OPPONENT_DISCONNECTED:
        return True
    if ":" not in frame:
        return False
    try:
        if msg.type is ServerMsgType.GAME_STATE:
            parse_game_state(msg.payload)
        elif msg.type is ServerMsgType.PLAYER:
            parse_player_number(msg.payload)
    except ProtocolError:
        return False
    return True


class FrameBuffer:
    """
    把字节流切分为消息帧；容忍半包与粘包。

    换行与回车只作可选分隔符。同一段文本中每出现一个已知标签就开始新的一帧。
    读取结束时剩下的残片若已是完整消息则立即交付，否则留待下一次读取。
    """

    def __init__(self, tags, is_complete, max_pending: int = BUFFER_SIZE):
        self._text = ""
        self._tag_re = re.compile("|".join(re.escape(t) for t in sorted(tags, key=len, reverse=True)))
        self._is_complete = is_complete
        self._max_pending = max_pending

    @classmethod
    def for_client_frames(cls) -> "FrameBuffer":
        """服务器端使用：切分客户端发来的 MOVE 帧"""
        return cls(CLIENT_TAGS, is_complete_client_frame)

    @classmethod
    def for_server_frames(cls) -> "FrameBuffer":
        """客户端使用：切分服务器下发的消息"""
        return cls(SERVER_TAGS, is_complete_server_frame)

    def feed(self, data: bytes) -> List[str]:
        self._text += data.decode(ENCODING, errors="replace")
        parts = _SEPARATOR_RE.split(self._text)
        tail = parts.pop()
        self._text = ""

        frames: List[str] = []
        for part in parts:
            frames.extend(self._split_tags(part))
        pieces = self._split_tags(tail)
        if pieces:
            last = pieces.pop()
            frames.extend(pieces)
            if self._is_complete(last):
                frames.append(last)
            else:
                self._text = last

        if len(self._text) > self._max_pending:
            # // 超长的残片直接丢弃
            logger.warning(f"丢弃超长残片: {len(self._text)} 字节")
            self._text = ""
        return frames

    def _split_tags(self, text: str) -> List[str]:
        cuts = sorted({0} | {m.start() for m in self._tag_re.finditer(text)})
        bounds = zip(cuts, cuts[1:] + [len(text)])
        return [text[a:b] for a, b in bounds if b > a]

    @property
    def pending(self) -> int:
        return len(self._text)


__all__ = [
    "ProtocolError",
    "ServerMsgType",
    "ServerMessage",
    "GameStateView",
    "decode_server_message",
    "parse_game_state",
    "parse_player_number",
    "ClientMsgType",
    "ClientMessage",
    "decode_client_message",
    "move_frame",
    "encode_frame",
    "SERVER_TAGS",
    "CLIENT_TAGS",
    "is_complete_client_frame",
    "is_complete_server_frame",
    "FrameBuffer",
]
