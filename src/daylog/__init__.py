"""
daylog - 异步按天轮转的文件日志

功能:
- 日志行带调用点信息（文件、行号、函数名）和时间戳
- 单独的写入线程异步写入 YYYY-MM-DD.log
- 跨天自动轮转
- 自动清理超过保留天数的日志
"""

from .cleaner import LogCleaner
from .default import close, configure, dump_config, errorf, get_logger, infof, set_logger
from .errors import DaylogError, LoggerClosedError, LoggerStateError
from .levels import Level
from .logger import Logger


def _resolve_version() -> str:
    """已安装包的版本号，源码直接运行时为 0.0.0-dev"""
    try:
        from importlib.metadata import version as meta_version

        return meta_version("daylog")
    except Exception:
        return "0.0.0-dev"


__version__ = _resolve_version()

__all__ = [
    "Logger",
    "Level",
    "LogCleaner",
    "DaylogError",
    "LoggerStateError",
    "LoggerClosedError",
    "configure",
    "infof",
    "errorf",
    "dump_config",
    "close",
    "get_logger",
    "set_logger",
]
