"""
进程级默认 Logger

提供包级函数 configure()/infof()/errorf()/dump_config()/close()，
内部转发给一个可替换的 Logger 实例（测试中用 set_logger() 注入）。
"""

import threading
from typing import Optional

from .errors import LoggerStateError
from .logger import DEFAULT_MAX_DAYS, Logger

_default: Optional[Logger] = None
_lock = threading.Lock()


def get_logger() -> Logger:
    """获取默认 Logger，未配置时抛出 LoggerStateError"""
    log = _default
    if log is None:
        raise LoggerStateError("Default logger is not configured, call daylog.configure() first")
    return log


def set_logger(log: Optional[Logger]) -> Optional[Logger]:
    """
    替换默认 Logger

    Returns:
        之前的默认 Logger（不会被关闭）
    """
    global _default
    with _lock:
        previous = _default
        _default = log
    return previous


def configure(level: int = 0, directory: str = "", max_days: int = DEFAULT_MAX_DAYS, **kwargs) -> Logger:
    """
    创建、配置并设为默认 Logger；kwargs 透传给 Logger()

    已有的默认 Logger 会被关闭（先写完队列中的日志）。
    """
    log = Logger(**kwargs)
    log.configure(level, directory, max_days)
    previous = set_logger(log)
    if previous is not None and previous is not log:
        previous.close()
    return log


def infof(fmt: str, *args) -> None:
    get_logger().infof(fmt, *args, stacklevel=2)


def errorf(fmt: str, *args) -> None:
    get_logger().errorf(fmt, *args, stacklevel=2)


def dump_config() -> None:
    get_logger().dump_config()


def close() -> None:
    """关闭并移除默认 Logger；未配置时什么也不做"""
    log = set_logger(None)
    if log is not None:
        log.close()
