"""
日志级别

级别只决定写入行的标签，不做过滤。
"""

from enum import IntEnum


class Level(IntEnum):
    """日志级别（与配置中的整数 1-3 一一对应）"""

    DEBUG = 1
    INFO = 2
    ERROR = 3

    @property
    def label(self) -> str:
        """写入日志行时使用的标签，如 "Info" """
        return self.name.capitalize()


def resolve_level(value: int, default: Level = Level.INFO) -> Level:
    """
    把配置中的整数转换为 Level

    0 表示未设置；无法识别的值被静默忽略，保留 default。
    """
    if value:
        try:
            return Level(value)
        except ValueError:
            pass
    return default
