"""
Tic-Tac-Toe - 井字棋双人联机服务器

A two-player tic-tac-toe game server speaking a line-based text protocol over TCP.
"""

__version__ = "0.1.0"
__author__ = "Tic-Tac-Toe Team"
__license__ = "MIT"

# 导出主要组件
from . import client, server, shared

__all__ = ["client", "server", "shared", "__version__"]
