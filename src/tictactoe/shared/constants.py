"""
常量定义

定义服务器与客户端共用的网络参数、棋盘参数和协议标签。
"""

# 网络配置
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
BUFFER_SIZE = 1024
ENCODING = "ascii"
FRAME_SEPARATORS = "\r\n"  # 可选分隔符，帧不要求以换行结尾

# 对局配置
MAX_PLAYERS = 2
BOARD_SIZE = 9
ACCEPT_POLL_INTERVAL = 1.0  # 秒，满员时等待空位的最长间隔
OUTBOX_LIMIT = 256  # 单个连接积压的待发送消息上限

# 棋子
MARK_EMPTY = " "
MARKS = ("X", "O")  # 玩家 0 -> X，玩家 1 -> O

# 服务器 -> 客户端 消息标签
MSG_PLAYER = "PLAYER"
MSG_GAME_STATE = "GAME_STATE"
MSG_WAIT = "WAIT"
MSG_NOT_YOUR_TURN = "NOT_YOUR_TURN"
MSG_INVALID_MOVE = "INVALID_MOVE"
MSG_OPPONENT_DISCONNECTED = "OPPONENT_DISCONNECTED"

# 客户端 -> 服务器 消息标签
MSG_MOVE = "MOVE"

# 对局结果标签
OUTCOME_CONTINUE = "CONTINUE"
OUTCOME_WIN = "WIN"
OUTCOME_DRAW = "DRAW"

# 提示文本（可本地化，协议只依赖标签）
TEXT_WAITING = "Waiting for the second player."
TEXT_NOT_YOUR_TURN = "It is not your turn."
TEXT_INVALID_MOVE = "Invalid move."
TEXT_CELL_OCCUPIED = "Cell already occupied."
