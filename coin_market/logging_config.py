import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING") -> None:
    """命令行入口使用：根 logger 只挂一个输出到 stderr 的处理器，重复调用不会叠加。"""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.handlers = []
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    # httpx 每个请求都打 INFO，命令行下只保留警告
    logging.getLogger("httpx").setLevel(logging.WARNING)
