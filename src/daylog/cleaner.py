"""
日志清理器

功能:
- 按保留天数清理旧日志（递归遍历日志目录，只删除 .log 文件）
- 按总大小清理（可选，防止磁盘爆满）
- 不删除正在写入的日志文件
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from .writer import LOG_SUFFIX

logger = logging.getLogger(__name__)


class LogCleaner:
    """
    日志清理器

    清理策略:
    1. 删除修改时间早于 now - retention_days 的 .log 文件
    2. 如果设置了 max_total_size_mb 且总大小超出，删除最旧的 .log 文件

    遍历或删除出错时中止本次清理，只记录日志，不抛出。
    文件已被其他清理删除视为成功，因此可以并发、重复执行。
    """

    def __init__(
        self,
        log_dir: str,
        retention_days: int = 7,
        max_total_size_mb: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
        active_file: Optional[Callable[[], Optional[Path]]] = None,
    ):
        """
        Args:
            log_dir: 日志目录
            retention_days: 保留天数（不做校验，0 或负数会清理几乎全部日志）
            max_total_size_mb: 最大总大小（MB），None 表示不限制
            clock: 当前时间来源
            active_file: 返回当前正在写入的文件，该文件不会被删除
        """
        self.log_dir = Path(log_dir or ".")
        self.retention_days = retention_days
        self.max_total_size_mb = max_total_size_mb
        self._clock = clock
        self._active_file = active_file

    def cleanup(self) -> dict:
        """
        执行清理

        Returns:
            清理统计 {"by_age": n, "by_size": n, "freed_mb": float}，
            中止时额外带 "error"
        """
        result = {
            "by_age": 0,
            "by_size": 0,
            "freed_mb": 0.0,
        }

        if not self.log_dir.exists():
            return result

        # 中止时保留已完成部分的统计
        freed = {"bytes": 0}
        try:
            self._cleanup_by_age(result, freed)
            if self.max_total_size_mb is not None:
                self._cleanup_by_size(result, freed)
        except OSError as e:
            logger.error(f"Failed to clean old logs: {e}")
            result["error"] = str(e)
        result["freed_mb"] = freed["bytes"] / (1024 * 1024)

        if result["by_age"] > 0 or result["by_size"] > 0:
            logger.info(
                f"Log cleanup completed: deleted {result['by_age']} by age, "
                f"{result['by_size']} by size, freed {result['freed_mb']:.2f} MB"
            )

        return result

    def _cleanup_by_age(self, result: dict, freed: dict) -> None:
        """按天数清理"""
        cutoff = self._clock() - timedelta(days=self.retention_days)

        for path in self._iter_log_files():
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            if datetime.fromtimestamp(stat.st_mtime) >= cutoff:
                continue
            if self._remove(path):
                result["by_age"] += 1
                freed["bytes"] += stat.st_size
                logger.info(f"Removed log file: {path}")

    def _cleanup_by_size(self, result: dict, freed: dict) -> None:
        """按大小清理（删除最旧的文件直到总大小低于限制）"""
        max_size_bytes = self.max_total_size_mb * 1024 * 1024

        files = []
        for path in self._iter_log_files():
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            files.append((stat.st_mtime, stat.st_size, path))

        # 最旧的在前
        files.sort(key=lambda item: item[0])
        total_size = sum(size for _, size, _ in files)

        active = self._current_active()
        if active is not None and active.exists():
            total_size += active.stat().st_size

        for _, size, path in files:
            if total_size <= max_size_bytes:
                break
            if self._remove(path):
                result["by_size"] += 1
                freed["bytes"] += size
                logger.debug(f"Deleted log file (by size): {path}")
            total_size -= size

    def _iter_log_files(self):
        """递归列出所有 .log 文件（不含正在写入的文件），遍历出错时抛出 OSError"""
        active = self._current_active()

        def _raise(error: OSError) -> None:
            raise error

        for root, _dirs, names in os.walk(self.log_dir, onerror=_raise):
            for name in names:
                if not name.endswith(LOG_SUFFIX):
                    continue
                path = Path(root) / name
                if not path.is_file():
                    continue
                if active is not None and os.path.abspath(path) == str(active):
                    continue
                yield path

    def _current_active(self) -> Optional[Path]:
        if self._active_file is None:
            return None
        path = self._active_file()
        if path is None:
            return None
        return Path(os.path.abspath(path))

    @staticmethod
    def _remove(path: Path) -> bool:
        """删除文件；已不存在时视为成功但不计数"""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def get_stats(self) -> dict:
        """
        获取日志统计信息

        Returns:
            统计信息字典
        """
        empty = {
            "file_count": 0,
            "total_size_mb": 0.0,
            "oldest_file": None,
            "newest_file": None,
        }
        if not self.log_dir.exists():
            return empty

        files = [f for f in self.log_dir.rglob(f"*{LOG_SUFFIX}") if f.is_file()]
        if not files:
            return empty

        total_size = sum(f.stat().st_size for f in files)
        files_sorted = sorted(files, key=lambda f: f.stat().st_mtime)

        return {
            "file_count": len(files),
            "total_size_mb": total_size / (1024 * 1024),
            "oldest_file": files_sorted[0].name,
            "newest_file": files_sorted[-1].name,
        }
