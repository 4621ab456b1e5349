"""
服务器主程序入口

启动井字棋服务器，监听客户端连接。
"""

import logging
import os
import sys
import time
from pathlib import Path

# 添加 src 目录到路径，便于直接以脚本运行
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from tictactoe.shared.constants import DEFAULT_HOST, DEFAULT_PORT  # noqa: E402

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = "server.log") -> None:
    """配置日志：同时输出到文件与控制台"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
    )


def load_address():
    """读取监听地址；支持通过环境变量 HOST / PORT 覆盖"""
    host = os.environ.get("HOST", DEFAULT_HOST)
    try:
        port = int(os.environ.get("PORT", DEFAULT_PORT))
    except ValueError:
        logger.warning(f"PORT 非法，使用默认端口 {DEFAULT_PORT}")
        port = DEFAULT_PORT
    return host, port


def main():
    """启动服务器主函数"""
    setup_logging()
    host, port = load_address()

    logger.info("=" * 50)
    logger.info("Tic-Tac-Toe 游戏服务器启动中...")
    logger.info(f"监听地址: {host}:{port}")
    logger.info("=" * 50)

    server = None
    try:
        from tictactoe.server.network import NetworkServer

        server = NetworkServer(host, port)
        server.start()

        logger.info("服务器运行中，按 Ctrl+C 停止")

        # // Accept 循环退出即结束服务
        while server.running:
            time.sleep(1)
        logger.error("Accept 循环已终止")

    except KeyboardInterrupt:
        logger.info("服务器正在关闭...")
    except Exception as e:
        logger.error(f"服务器错误: {e}", exc_info=True)
    finally:
        if server is not None:
            server.stop()
        logger.info("服务器已停止")


if __name__ == "__main__":
    main()
