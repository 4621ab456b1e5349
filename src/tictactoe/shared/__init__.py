"""
共享模块

存放客户端和服务器共用的代码，如常量、协议定义、数据模型。

组件说明：
- constants: 网络端口、棋盘参数、消息标签与提示文本
- models: 对局结果 Outcome（CONTINUE / WIN:<n> / DRAW）
- protocols: 按行分隔的文本协议（TAG 或 TAG:payload）与分帧缓冲

提示：
- 帧没有强制分隔符：换行可有可无，粘包按消息标签切分
"""

from . import constants, models, protocols

__all__ = ["constants", "models", "protocols"]
