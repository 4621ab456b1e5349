"""
服务器端模块

负责处理客户端连接、对局逻辑与座位管理。

模块组成：
- game: 棋盘、胜负判定与回合状态机
- network: TCP 会话、座位登记、消息分发与广播

使用方式：
- 入口参见 tictactoe/server/main.py，启动 NetworkServer
"""

from . import game, network

__all__ = ["game", "network"]
