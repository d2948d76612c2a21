"""
daylog 异常

Usage:
    from daylog.errors import LoggerClosedError

    try:
        log.infof("late message")
    except LoggerClosedError:
        ...
"""


class DaylogError(Exception):
    """daylog 所有异常的基类"""


class LoggerStateError(DaylogError):
    """在错误的生命周期阶段调用（未配置、重复配置、关闭后重新配置）"""


class LoggerClosedError(LoggerStateError):
    """Logger 已关闭后仍然写入日志"""
