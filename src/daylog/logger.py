"""
异步按天文件日志

功能:
- 调用方线程格式化日志行（含调用点信息和时间戳）后放入有界队列
- 单个写入线程从队列取出并写入当天的 YYYY-MM-DD.log
- 跨天自动轮转
- 后台清理超过保留天数的日志文件

使用方式:
    log = Logger()
    log.configure(Level.INFO, "logs", 7)
    log.infof("user %s logged in", name)
    log.close()
"""

import logging
import os
import queue
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .caller import capture_caller, format_line
from .cleaner import LogCleaner
from .errors import LoggerClosedError, LoggerStateError
from .levels import Level, resolve_level
from .writer import DailyFileWriter

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 3000
DEFAULT_MAX_DAYS = 7

# 写入线程的退出信号
_CLOSE = object()


def absolute_path(path: str) -> str:
    """
    转换为绝对路径

    结果打印到标准输出；失败时也打印到标准输出并返回空字符串
    （之后按当前工作目录处理）。
    """
    try:
        resolved = os.path.abspath(path)
    except OSError as e:
        print("Failed to get absolute path:", e)
        return ""
    print(resolved)
    return resolved


def _format_message(fmt: str, args: tuple) -> str:
    """
    按 printf 风格格式化消息

    格式与参数不匹配时不抛出，退化为原始格式串加参数列表。
    """
    if not args:
        return fmt
    try:
        return fmt % args
    except (TypeError, ValueError, KeyError) as e:
        logger.warning(f"Bad log format {fmt!r} for args {args!r}: {e}")
        return f"{fmt} {args!r}"


class Logger:
    """
    异步文件日志记录器

    生命周期: 构造 -> configure() -> infof()/errorf() ... -> close()。
    close() 之后不能重新 configure。

    调用 close() 之前必须先停止所有写日志的线程。
    """

    def __init__(
        self,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        sticky_error_level: bool = True,
        max_total_size_mb: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            queue_size: 队列容量，队列满时写日志的调用方阻塞等待
            sticky_error_level: errorf() 是否把全局级别永久改为 ERROR
            max_total_size_mb: 日志目录总大小上限（MB），None 表示不限制
            clock: 当前时间来源（测试中可替换以模拟跨天）
        """
        self.level = Level.INFO
        self.directory = ""
        self.max_days = DEFAULT_MAX_DAYS
        self.sticky_error_level = sticky_error_level
        self.max_total_size_mb = max_total_size_mb

        if queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {queue_size}")

        self._clock = clock
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._writer: Optional[DailyFileWriter] = None
        self._cleaner: Optional[LogCleaner] = None
        self._writer_thread: Optional[threading.Thread] = None
        self._sweep_thread: Optional[threading.Thread] = None
        self._sweep_running = threading.Lock()
        self._state_lock = threading.Lock()
        self._configured = False
        self._closed = False

    @classmethod
    def from_settings(cls, settings) -> "Logger":
        """根据 Settings 创建并配置 Logger"""
        log = cls(
            queue_size=settings.queue_size,
            sticky_error_level=settings.sticky_error_level,
            max_total_size_mb=settings.max_total_size_mb,
        )
        log.configure(settings.level, settings.log_dir, settings.max_days)
        return log

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current_file(self) -> Optional[Path]:
        """正在写入的日志文件"""
        if self._writer is None:
            return None
        return self._writer.current_path

    def configure(
        self,
        level: int = 0,
        directory: str = "",
        max_days: int = DEFAULT_MAX_DAYS,
    ) -> None:
        """
        配置并启动日志记录器

        打开当天的日志文件，启动写入线程，并触发一次过期日志清理。
        日志目录无法创建或日志文件无法打开时直接退出进程。

        Args:
            level: 日志级别 1-3，0 表示默认 INFO，其他值被忽略
            directory: 日志目录，空字符串表示当前工作目录
            max_days: 日志保留天数（原样保存，不做校验）
        """
        with self._state_lock:
            if self._closed:
                raise LoggerStateError("Logger is closed and cannot be reconfigured")
            if self._configured:
                raise LoggerStateError("Logger is already configured")

            self.level = resolve_level(level, Level.INFO)

            if directory:
                try:
                    Path(directory).mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    logger.critical(f"Cannot create log directory {directory}: {e}")
                    raise SystemExit(1) from e
            self.directory = absolute_path(directory or ".")
            self.max_days = max_days

            self._writer = DailyFileWriter(self.directory, clock=self._clock)
            try:
                self._writer.open()
            except OSError as e:
                logger.critical(f"Cannot open log file in {self.directory or os.curdir}: {e}")
                raise SystemExit(1) from e

            self._cleaner = LogCleaner(
                self.directory,
                retention_days=self.max_days,
                max_total_size_mb=self.max_total_size_mb,
                clock=self._clock,
                active_file=lambda: self.current_file,
            )

            self._writer_thread = threading.Thread(
                target=self._write_loop, name="daylog-writer", daemon=True
            )
            self._writer_thread.start()
            self._configured = True

        self._trigger_sweep()

    def infof(self, fmt: str, *args, stacklevel: int = 1) -> None:
        """写入一条日志，标签为当前级别"""
        self._enqueue(self.level, fmt, args, stacklevel)

    def errorf(self, fmt: str, *args, stacklevel: int = 1) -> None:
        """
        写入一条 ERROR 日志

        sticky_error_level 为 True 时同时把全局级别改为 ERROR，
        之后 infof() 写出的行也带 [Error] 标签。
        """
        if self.sticky_error_level:
            self.level = Level.ERROR
        self._enqueue(Level.ERROR, fmt, args, stacklevel)

    def _enqueue(self, level: Level, fmt: str, args: tuple, stacklevel: int) -> None:
        if self._closed:
            raise LoggerClosedError("Cannot write to a closed logger")
        if not self._configured:
            raise LoggerStateError("Logger is not configured")

        # 栈: capture_caller <- _enqueue <- infof/errorf <- 调用方
        site = capture_caller(stacklevel + 2)
        message = _format_message(fmt, args)
        line = format_line(level.label, message, site, self._clock())

        # 队列满时阻塞，不丢弃
        self._queue.put(line)

    def _write_loop(self) -> None:
        while True:
            line = self._queue.get()
            try:
                if line is _CLOSE:
                    return
                if not line:
                    continue
                if self._writer.write(line):
                    self._trigger_sweep()
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """阻塞直到目前已入队的日志全部写入文件"""
        if self._writer_thread is not None and self._writer_thread.is_alive():
            self._queue.join()

    def clear_old_logs(self) -> dict:
        """
        立即执行一次过期日志清理（在调用线程中）

        Returns:
            清理统计，见 LogCleaner.cleanup()
        """
        if self._cleaner is None:
            raise LoggerStateError("Logger is not configured")
        return self._cleaner.cleanup()

    def _trigger_sweep(self) -> None:
        """在后台线程清理过期日志；已有清理在运行时跳过"""
        if self._cleaner is None:
            return
        if not self._sweep_running.acquire(blocking=False):
            return
        self._sweep_thread = threading.Thread(
            target=self._sweep_in_background, name="daylog-sweep", daemon=True
        )
        self._sweep_thread.start()

    def _sweep_in_background(self) -> None:
        try:
            self._cleaner.cleanup()
        except Exception as e:
            logger.error(f"Failed to clean old logs: {e}", exc_info=True)
        finally:
            self._sweep_running.release()

    def wait_for_sweep(self, timeout: Optional[float] = None) -> None:
        """等待最近一次后台清理结束"""
        thread = self._sweep_thread
        if thread is not None:
            thread.join(timeout)

    def dump_config(self) -> None:
        """打印当前级别、目录和保留天数到标准输出"""
        print(self.level.label, self.directory, self.max_days)
        sys.stdout.flush()

    def close(self) -> None:
        """
        关闭日志记录器

        不再接受新日志，等待写入线程把队列写完后关闭文件。重复调用无副作用。
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True

        if self._writer_thread is not None:
            self._queue.put(_CLOSE)
            self._writer_thread.join()
        if self._writer is not None:
            self._writer.close()

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
