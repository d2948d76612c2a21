"""
daylog 自身的诊断日志

写入失败、轮转失败、清理失败等都通过标准库 logging 报告到
"daylog" 记录器。这里提供一个把它输出到 stderr 的默认配置。
"""

import logging
import sys
from typing import Optional, TextIO

DIAGNOSTIC_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ColoredConsoleHandler(logging.StreamHandler):
    """
    stderr 诊断输出，只给级别名上色

    非终端（文件、管道、StringIO）默认不上色，force_color 可强制开启。
    """

    LEVEL_COLORS = (
        (logging.CRITICAL, "\033[1;31m"),
        (logging.ERROR, "\033[31m"),
        (logging.WARNING, "\033[33m"),
        (logging.INFO, "\033[36m"),
        (logging.NOTSET, "\033[2m"),
    )
    RESET = "\033[0m"

    def __init__(self, stream: Optional[TextIO] = None, force_color: bool = False):
        super().__init__(stream or sys.stderr)
        isatty = getattr(self.stream, "isatty", None)
        self.use_color = force_color or bool(isatty and isatty())

    @classmethod
    def color_for(cls, levelno: int) -> str:
        for threshold, color in cls.LEVEL_COLORS:
            if levelno >= threshold:
                return color
        return ""

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)

        # 在副本上改 levelname，避免影响其他处理器
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{self.color_for(record.levelno)}{record.levelname}{self.RESET}"
        return super().format(colored)


def setup_diagnostics(
    level: str = "WARNING",
    stream: Optional[TextIO] = None,
    log_format: str = DIAGNOSTIC_FORMAT,
) -> logging.Logger:
    """
    配置 daylog 诊断日志

    Args:
        level: 诊断日志级别
        stream: 输出流（默认 stderr）
        log_format: 日志格式

    Returns:
        "daylog" 日志记录器
    """
    diag_logger = logging.getLogger("daylog")
    diag_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # 清除现有处理器
    diag_logger.handlers.clear()

    handler = ColoredConsoleHandler(stream)
    handler.setFormatter(logging.Formatter(log_format))
    diag_logger.addHandler(handler)
    diag_logger.propagate = False

    return diag_logger
