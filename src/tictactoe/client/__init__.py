"""
客户端模块

无界面的网络客户端，负责连接服务器、收发协议消息并维护本地棋盘视图。
"""

from . import network

__all__ = ["network"]
