"""
调用点信息

在公开 API 边界捕获调用者的文件、行号和函数名，
并拼接成最终写入文件的日志行。必须在入队时捕获，
写入线程的调用栈上已经没有调用者的信息。
"""

import sys
from dataclasses import dataclass
from datetime import datetime

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LINE_FORMAT = "[{level}][{time}] fileLine:{file}:{line} funcName:{func};message:{message}\n"


@dataclass(frozen=True)
class CallSite:
    """一次日志调用的来源位置"""
    filename: str
    lineno: int
    function: str


def short_function_name(full_name: str) -> str:
    """取限定名最后一个 "." 之后的部分，如 "Worker.run" -> "run" """
    if not full_name:
        return ""
    return full_name.rsplit(".", 1)[-1]


def capture_caller(depth: int) -> CallSite:
    """
    捕获调用栈上第 depth 层的位置

    depth=1 是 capture_caller 的直接调用者，以此类推，
    与 sys._getframe 的计数方式一致。
    """
    try:
        frame = sys._getframe(depth)
    except ValueError:
        return CallSite("", 0, "")

    code = frame.f_code
    qualname = getattr(code, "co_qualname", code.co_name)
    return CallSite(code.co_filename, frame.f_lineno, short_function_name(qualname))


def format_line(level_label: str, message: str, site: CallSite, now: datetime) -> str:
    """拼接一行完整的日志（带换行符）"""
    return LINE_FORMAT.format(
        level=level_label,
        time=now.strftime(TIME_FORMAT),
        file=site.filename,
        line=site.lineno,
        func=site.function,
        message=message,
    )
