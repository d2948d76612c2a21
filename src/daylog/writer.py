"""
按天轮转的日志文件

功能:
- 打开（不存在则创建）当天的 YYYY-MM-DD.log，追加写入
- 日期变化时在锁内切换文件句柄
- 写入/轮转失败只记录诊断日志，不向调用方抛出
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".log"
DATE_FORMAT = "%Y-%m-%d"


def log_file_name(when: datetime) -> str:
    """日期对应的日志文件名，如 2026-10-18.log"""
    return when.strftime(DATE_FORMAT) + LOG_SUFFIX


class DailyFileWriter:
    """
    当前打开的日志文件

    同一时刻只持有一个文件句柄。只应由一个写入线程调用 write()，
    锁只保护句柄切换，写入本身在锁外进行。
    """

    def __init__(
        self,
        directory: str,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            directory: 日志目录（空字符串表示当前工作目录）
            clock: 当前时间来源（测试中可替换以模拟跨天）
        """
        self.directory = Path(directory or ".")
        self._clock = clock
        self._file: Optional[TextIO] = None
        self._path: Optional[Path] = None
        self._date = ""
        self._lock = threading.Lock()

    @property
    def current_path(self) -> Optional[Path]:
        """当前打开的日志文件路径"""
        return self._path

    @property
    def current_date(self) -> str:
        """当前文件对应的日期"""
        return self._date

    def open(self) -> None:
        """
        打开当天的日志文件

        Raises:
            OSError: 文件无法打开（由调用方决定是否致命）
        """
        now = self._clock()
        with self._lock:
            self._swap(now)

    def write(self, line: str) -> bool:
        """
        写入一行，必要时先轮转

        Returns:
            本次写入前是否发生了轮转
        """
        rotated = False
        now = self._clock()
        if now.strftime(DATE_FORMAT) != self._date:
            rotated = self.rotate(now)

        handle = self._file
        if handle is None:
            logger.error("No open log file, dropping line")
            return rotated

        try:
            handle.write(line)
            handle.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write log line to {self._path}: {e}")
        return rotated

    def rotate(self, now: datetime) -> bool:
        """
        切换到 now 对应日期的文件

        新文件打不开时保留旧句柄继续写。

        Returns:
            是否切换成功
        """
        with self._lock:
            try:
                self._swap(now)
            except OSError as e:
                logger.error(f"Failed to rotate log file: {e}")
                return False
        logger.debug(f"Rotated log file to {self._path}")
        return True

    def _swap(self, now: datetime) -> None:
        # 调用方必须持有 self._lock
        path = self.directory / log_file_name(now)
        handle = open(path, "a", encoding="utf-8")
        previous = self._file
        self._file = handle
        self._path = path.absolute()
        self._date = now.strftime(DATE_FORMAT)
        if previous is not None:
            try:
                previous.close()
            except OSError:
                pass

    def close(self) -> None:
        """关闭当前文件，忽略关闭错误"""
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.close()
            except OSError:
                pass
