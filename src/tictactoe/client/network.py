"""
简单的客户端网络封装：负责连接服务器、收发消息并提供事件队列。
"""
from __future__ import annotations

import logging
import socket
import threading
from queue import Empty, SimpleQueue
from typing import List, Optional

from tictactoe.shared.constants import BOARD_SIZE, BUFFER_SIZE, DEFAULT_PORT, MARK_EMPTY
from tictactoe.shared.protocols import (
    FrameBuffer,
    GameStateView,
    ProtocolError,
    ServerMessage,
    ServerMsgType,
    decode_server_message,
    move_frame,
    parse_game_state,
    parse_player_number,
)

logger = logging.getLogger(__name__)


class NetworkClient:
    """线程驱动的轻量客户端，维护玩家编号与最近一次棋局状态。"""

    def __init__(self, host: str = "127.0.0.1", port: int = DEFAULT_PORT) -> None:
        self.host = host
        self.port = port
        self.sock: Optional[socket.socket] = None
        self._recv_thread: Optional[threading.Thread] = None
        self._running = threading.Event()
        self._frames = FrameBuffer.for_server_frames()
        self.events: SimpleQueue[ServerMessage] = SimpleQueue()
        # 服务器下发的编号，1 或 2
        self.player_number: Optional[int] = None
        self.state: Optional[GameStateView] = None
        self.board: str = MARK_EMPTY * BOARD_SIZE

    @property
    def connected(self) -> bool:
        return bool(self.sock) and self._running.is_set()

    @property
    def is_my_turn(self) -> bool:
        if self.player_number is None or self.state is None:
            return False
        if self.state.outcome.is_terminal:
            return False
        return self.player_number - 1 == self.state.current_player

    def connect(self, timeout: float = 5.0) -> bool:
        """连接服务器。"""
        if self.connected:
            return True
        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            # 设置连接超时
            self.sock.settimeout(timeout)
            self.sock.connect((self.host, self.port))
            # 连接成功后取消超时，阻塞接收
            self.sock.settimeout(None)
            self._running.set()
            self._recv_thread = threading.Thread(target=self._recv_loop, name="client-recv", daemon=True)
            self._recv_thread.start()
            return True
        except OSError as e:
            logger.warning(f"连接失败: {e}")
            self.close()
            return False

    def send_move(self, cell: int) -> None:
        self.send_raw(move_frame(cell))

    def send_raw(self, data: bytes) -> None:
        """原样发送字节，不追加分隔符"""
        if not self.sock:
            return
        try:
            self.sock.sendall(data)
        except OSError:
            self.close()

    def next_event(self, timeout: Optional[float] = None) -> Optional[ServerMessage]:
        """取出下一条消息；超时返回 None"""
        try:
            return self.events.get(timeout=timeout)
        except Empty:
            return None

    def drain_events(self) -> List[ServerMessage]:
        items: List[ServerMessage] = []
        while True:
            try:
                items.append(self.events.get_nowait())
            except Empty:
                break
        return items

    def close(self) -> None:
        self._running.clear()
        try:
            if self.sock:
                try:
                    self.sock.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
                self.sock.close()
        finally:
            self.sock = None

    # 内部方法
    def _recv_loop(self) -> None:
        try:
            while self._running.is_set() and self.sock:
                data = self.sock.recv(BUFFER_SIZE)
                if not data:
                    break
                for frame in self._frames.feed(data):
                    self._handle_frame(frame)
        except OSError:
            pass
        finally:
            self.close()

    def _handle_frame(self, frame: str) -> None:
        try:
            msg = decode_server_message(frame)
            self._apply(msg)
        except ProtocolError as e:
            # 忽略无法解析的消息
            logger.warning(f"无法解析的服务器消息 {frame!r}: {e}")
            return
        self.events.put(msg)

    def _apply(self, msg: ServerMessage) -> None:
        """根据消息更新本地视图"""
        if msg.type is ServerMsgType.PLAYER:
            self.player_number = parse_player_number(msg.payload)
        elif msg.type is ServerMsgType.GAME_STATE:
            self.state = parse_game_state(msg.payload)
            self.board = self.state.board
        elif msg.type is ServerMsgType.OPPONENT_DISCONNECTED:
            self.state = None
            self.board = MARK_EMPTY * BOARD_SIZE


__all__ = ["NetworkClient"]
