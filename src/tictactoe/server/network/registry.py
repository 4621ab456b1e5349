"""
连接登记表

固定两个座位，按到达顺序分配最小的空闲编号。
"""

from __future__ import annotations

import logging
import socket
import threading
from queue import Full, Queue
from typing import List, Optional, Tuple

from tictactoe.shared.constants import MAX_PLAYERS, OUTBOX_LIMIT
from tictactoe.shared.protocols import FrameBuffer, ServerMessage

logger = logging.getLogger(__name__)


class RegistryFull(Exception):
	"""两个座位都已占用"""


class ClientSession:
	"""客户端会话，即一个座位：封装连接、玩家编号与发送队列

	调用 start_writer() 后，send() 只把消息放入队列，由独立的发送线程写出，
	对端不读数据时阻塞的只是这条连接自己的发送线程。未启动发送线程时直接写出。
	"""

	def __init__(self, conn: socket.socket, addr: Tuple[str, int], outbox_limit: int = OUTBOX_LIMIT):
		self.conn = conn
		self.addr = addr
		self.player_index: Optional[int] = None
		self.connected = True
		self.frames = FrameBuffer.for_client_frames()
		self._outbox_limit = outbox_limit
		self._outbox: Optional[Queue] = None
		self._writer: Optional[threading.Thread] = None

	def start_writer(self) -> None:
		self._outbox = Queue(maxsize=self._outbox_limit)
		self._writer = threading.Thread(target=self._write_loop, name=f"writer-{self.addr[1]}", daemon=True)
		self._writer.start()

	def send(self, msg: ServerMessage) -> bool:
		"""发送或入队一帧；积压超限或写失败时关闭读写，使接收循环自行退出并清理"""
		if not self.connected:
			return False
		if self._outbox is None:
			return self._write(msg)
		try:
			self._outbox.put_nowait(msg)
			return True
		except Full:
			logger.warning(f"待发送消息积压超过 {self._outbox_limit} 条，断开: {self.addr}")
			self.shutdown()
			return False

	def _write(self, msg: ServerMessage) -> bool:
		try:
			self.conn.sendall(msg.to_bytes())
			return True
		except OSError as e:
			logger.warning(f"发送失败: {self.addr} {msg.type.value}: {e}")
			self.shutdown()
			return False

	def _write_loop(self) -> None:
		while True:
			msg = self._outbox.get()
			# // None 为关闭信号
			if msg is None or not self.connected:
				break
			if not self._write(msg):
				break

	def shutdown(self) -> None:
		try:
			self.conn.shutdown(socket.SHUT_RDWR)
		except OSError:
			pass

	def close(self) -> None:
		self.connected = False
		# // 先 shutdown，唤醒阻塞在 sendall 上的发送线程
		self.shutdown()
		try:
			self.conn.close()
		except OSError:
			pass
		if self._outbox is not None:
			try:
				self._outbox.put_nowait(None)
			except Full:
				pass

	def __repr__(self) -> str:
		return f"ClientSession(addr={self.addr}, player_index={self.player_index})"


class ConnectionRegistry:
	"""最多两个座位的登记表。本类不加锁，由服务器在同一把锁内调用。"""

	def __init__(self, capacity: int = MAX_PLAYERS):
		self._slots: List[Optional[ClientSession]] = [None] * capacity

	def admit(self, sess: ClientSession) -> int:
		"""分配最小空闲座位并返回编号；满员时抛出 RegistryFull"""
		for index, occupant in enumerate(self._slots):
			if occupant is None:
				self._slots[index] = sess
				sess.player_index = index
				return index
		raise RegistryFull(f"all {len(self._slots)} slots are occupied")

	def remove(self, sess: ClientSession) -> Optional[int]:
		"""释放该会话的座位并返回其编号；不在登记表中时返回 None"""
		for index, occupant in enumerate(self._slots):
			if occupant is sess:
				self._slots[index] = None
				return index
		return None

	def get(self, index: int) -> Optional[ClientSession]:
		if 0 <= index < len(self._slots):
			return self._slots[index]
		return None

	def sessions(self) -> List[ClientSession]:
		return [s for s in self._slots if s is not None]

	def count(self) -> int:
		return len(self.sessions())

	def is_full(self) -> bool:
		return all(s is not None for s in self._slots)

	def send_to(self, index: int, msg: ServerMessage) -> None:
		"""单播；座位空缺时直接跳过"""
		sess = self.get(index)
		if sess is not None:
			sess.send(msg)

	def broadcast(self, msg: ServerMessage) -> None:
		"""向所有在座连接广播；某一方发送失败不影响另一方"""
		for sess in self.sessions():
			sess.send(msg)


__all__ = ["ClientSession", "ConnectionRegistry", "RegistryFull"]
