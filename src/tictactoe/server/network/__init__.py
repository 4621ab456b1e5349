"""
网络通信模块

监听 TCP 连接、为每个连接运行接收线程，并把解码后的消息分发到对局状态机。
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Optional, Tuple

from tictactoe.shared.constants import (
	ACCEPT_POLL_INTERVAL,
	BUFFER_SIZE,
	DEFAULT_HOST,
	DEFAULT_PORT,
	TEXT_CELL_OCCUPIED,
	TEXT_INVALID_MOVE,
	TEXT_NOT_YOUR_TURN,
	TEXT_WAITING,
)
from tictactoe.shared.protocols import (
	ClientMessage,
	ClientMsgType,
	ServerMessage,
	decode_client_message,
)
from tictactoe.server.game import CellOccupied, IllegalMove, MatchState
from tictactoe.server.network.registry import ClientSession, ConnectionRegistry, RegistryFull

logger = logging.getLogger(__name__)


class NetworkServer:
	"""网络服务器，负责座位分配、消息分发与广播

	对局状态、棋盘和登记表共用一把锁（self._cond），任意时刻只处理一条消息。
	锁内只把消息放入各会话的发送队列，真正的写操作由会话自己的发送线程完成。
	"""

	def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
		self.host = host
		self.port = port
		self._sock: Optional[socket.socket] = None
		self._accept_thread: Optional[threading.Thread] = None
		self._running = threading.Event()
		self._cond = threading.Condition(threading.Lock())
		self.registry = ConnectionRegistry()
		self.match = MatchState()

	@property
	def running(self) -> bool:
		return self._running.is_set()

	@property
	def address(self) -> Tuple[str, int]:
		return self.host, self.port

	# 服务器生命周期
	def start(self) -> None:
		"""绑定端口并启动 Accept 线程；绑定失败时抛出 OSError"""
		sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		# // 允许快速重启服务
		sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		try:
			sock.bind((self.host, self.port))
			sock.listen(5)
		except OSError:
			sock.close()
			raise
		self._sock = sock
		# // 端口为 0 时记录系统分配的端口
		self.port = sock.getsockname()[1]
		self._running.set()
		self._accept_thread = threading.Thread(target=self._accept_loop, name="accept-loop", daemon=True)
		self._accept_thread.start()
		logger.info(f"服务器已监听 {self.host}:{self.port}")

	def stop(self) -> None:
		"""停止接入并断开所有会话"""
		self._running.clear()
		with self._cond:
			self._cond.notify_all()
			sessions = self.registry.sessions()
		sock, self._sock = self._sock, None
		if sock:
			# // 触发 accept 退出
			try:
				sock.shutdown(socket.SHUT_RDWR)
			except OSError:
				pass
			sock.close()
		# // 接收线程在 finally 中释放座位
		for sess in sessions:
			sess.shutdown()
		if self._accept_thread and self._accept_thread is not threading.current_thread():
			self._accept_thread.join(timeout=2.0)

	# 接入与会话线程
	def _accept_loop(self) -> None:
		"""满员时等待空位，否则接入新连接并为其创建会话线程"""
		try:
			while self._running.is_set():
				with self._cond:
					while self._running.is_set() and self.registry.is_full():
						self._cond.wait(ACCEPT_POLL_INTERVAL)
				sock = self._sock
				if not self._running.is_set() or sock is None:
					break
				try:
					conn, addr = sock.accept()
				except OSError as e:
					if self._running.is_set():
						logger.error(f"Accept 失败，停止接入: {e}")
					break
				sess = ClientSession(conn, addr)
				sess.start_writer()
				try:
					self.admit_session(sess)
				except RegistryFull:
					logger.warning(f"座位已满，拒绝连接: {addr}")
					sess.close()
					continue
				t = threading.Thread(
					target=self._session_loop, args=(sess,), name=f"session-{addr[1]}", daemon=True
				)
				t.start()
		finally:
			self._running.clear()

	def _session_loop(self, sess: ClientSession) -> None:
		"""单会话接收循环：读到 EOF 或出错即退出，退出时总会释放座位"""
		try:
			while self._running.is_set():
				data = sess.conn.recv(BUFFER_SIZE)
				if not data:
					break
				for frame in sess.frames.feed(data):
					self.handle_frame(sess, frame)
		except OSError as e:
			logger.info(f"连接异常: {sess.addr}: {e}")
		except Exception:
			logger.exception(f"会话处理出错: {sess.addr}")
		finally:
			self.drop_session(sess)

	# 座位管理
	def admit_session(self, sess: ClientSession) -> int:
		"""分配座位并通知玩家编号；第二个座位入座时开始新对局"""
		with self._cond:
			index = self.registry.admit(sess)
			logger.info(f"玩家 {index + 1} 已连接: {sess.addr}")
			sess.send(ServerMessage.player(index))
			if self.registry.is_full():
				self.match.start()
				self._broadcast_state()
			return index

	def drop_session(self, sess: ClientSession) -> None:
		"""释放座位；若对局进行中则中止并通知对手。可重复调用。"""
		with self._cond:
			index = self.registry.remove(sess)
			sess.close()
			if index is None:
				return
			logger.info(f"玩家 {index + 1} 已断开: {sess.addr}")
			if self.match.abort():
				self.registry.broadcast(ServerMessage.opponent_disconnected())
			self._cond.notify_all()

	# 消息处理
	def handle_frame(self, sess: ClientSession, line: str) -> None:
		"""一帧文本 -> ClientMessage 并分发"""
		msg = decode_client_message(line)
		with self._cond:
			self._dispatch(sess, msg)

	def _dispatch(self, sess: ClientSession, msg: ClientMessage) -> None:
		player = sess.player_index
		if player is None or self.registry.get(player) is not sess:
			return

		if not self.match.in_progress or not self.registry.is_full():
			logger.info(f"玩家 {player + 1} 在对局开始前发送消息: {msg.raw!r}")
			sess.send(ServerMessage.wait(TEXT_WAITING))
			return

		if self.match.current_player != player:
			logger.info(f"玩家 {player + 1} 不在自己的回合行棋")
			sess.send(ServerMessage.not_your_turn(TEXT_NOT_YOUR_TURN))
			return

		if msg.type is ClientMsgType.UNKNOWN:
			logger.debug(f"忽略未知消息: {msg.raw!r}")
			return

		if msg.type is ClientMsgType.MALFORMED_MOVE:
			logger.info(f"玩家 {player + 1} 非法落子: {msg.raw!r}")
			sess.send(ServerMessage.invalid_move(TEXT_INVALID_MOVE))
			return

		try:
			outcome = self.match.play(player, msg.cell)
		except CellOccupied:
			logger.info(f"玩家 {player + 1} 落子在已占用的格子 {msg.cell}")
			sess.send(ServerMessage.invalid_move(TEXT_CELL_OCCUPIED))
			return
		except IllegalMove:
			sess.send(ServerMessage.invalid_move(TEXT_INVALID_MOVE))
			return

		logger.info(f"玩家 {player + 1} 落子 {msg.cell}: {self.match.board.serialize()!r} {outcome}")
		self._broadcast_state()

	# 广播
	def _broadcast_state(self) -> None:
		msg = ServerMessage.game_state(
			self.match.board.serialize(), self.match.current_player, self.match.outcome
		)
		self.registry.broadcast(msg)


__all__ = [
	"ClientSession",
	"ConnectionRegistry",
	"NetworkServer",
	"RegistryFull",
]
