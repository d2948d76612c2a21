"""Logger 写入管线、轮转、清理与生命周期测试"""

import os
import re
import sys
import threading
import time
from pathlib import Path

import pytest

from daylog.errors import LoggerClosedError, LoggerStateError
from daylog.levels import Level
from daylog.writer import log_file_name

LINE_RE = re.compile(
    r"^\[(Debug|Info|Error)\]\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] "
    r"fileLine:.+:\d+ funcName:[^;]*;message:.*$"
)


def _lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


def _age(path: Path, days: float) -> None:
    mtime = time.time() - days * 24 * 60 * 60
    os.utime(path, (mtime, mtime))


class TestConfigure:
    def test_creates_today_file(self, tmp_path, make_logger, clock):
        log = make_logger(clock=clock)
        log.configure(Level.INFO, str(tmp_path / "logs" / "app"), 7)

        expected = tmp_path / "logs" / "app" / log_file_name(clock.now)
        assert expected.exists()
        assert log.current_file == expected

    def test_defaults(self, tmp_path, make_logger, monkeypatch):
        monkeypatch.chdir(tmp_path)
        log = make_logger()
        log.configure(0, "", 3)

        assert log.level is Level.INFO
        assert log.directory == str(tmp_path)
        assert log.max_days == 3

    def test_directory_resolved_to_absolute(self, tmp_path, make_logger, monkeypatch):
        monkeypatch.chdir(tmp_path)
        log = make_logger()
        log.configure(Level.DEBUG, "relative/logs", 7)

        assert log.directory == os.path.join(str(tmp_path), "relative", "logs")
        assert log.level is Level.DEBUG

    def test_unknown_level_is_ignored(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(42, str(tmp_path), 7)
        assert log.level is Level.INFO

    def test_max_days_stored_verbatim(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), -5)
        assert log.max_days == -5

    def test_unopenable_file_exits(self, tmp_path, make_logger, clock):
        (tmp_path / log_file_name(clock.now)).mkdir()
        log = make_logger(clock=clock)

        with pytest.raises(SystemExit):
            log.configure(Level.INFO, str(tmp_path), 7)

    def test_uncreatable_directory_exits(self, tmp_path, make_logger):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        log = make_logger()

        with pytest.raises(SystemExit):
            log.configure(Level.INFO, str(blocker / "logs"), 7)

    def test_configure_twice_rejected(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        with pytest.raises(LoggerStateError):
            log.configure(Level.INFO, str(tmp_path), 7)

    def test_no_restart_after_close(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        log.close()
        with pytest.raises(LoggerStateError):
            log.configure(Level.INFO, str(tmp_path), 7)

    def test_prints_resolved_directory(self, tmp_path, make_logger, capsys, monkeypatch):
        monkeypatch.chdir(tmp_path)
        log = make_logger()
        log.configure(Level.INFO, "logs", 7)

        assert capsys.readouterr().out == f"{tmp_path / 'logs'}\n"

    def test_queue_size_must_be_positive(self, make_logger):
        with pytest.raises(ValueError):
            make_logger(queue_size=0)

    def test_dump_config(self, tmp_path, make_logger, capsys):
        log = make_logger()
        log.configure(Level.DEBUG, str(tmp_path), 9)
        capsys.readouterr()

        log.dump_config()

        assert capsys.readouterr().out == f"Debug {tmp_path} 9\n"


class TestWritePath:
    def test_line_format_and_caller(self, tmp_path, make_logger, clock):
        log = make_logger(clock=clock)
        log.configure(Level.INFO, str(tmp_path), 7)

        log.infof("user %s has %d items", "alice", 3)
        lineno = sys._getframe().f_lineno - 1
        log.flush()

        (line,) = _lines(log.current_file)
        assert line == (
            f"[Info][{clock.now:%Y-%m-%d %H:%M:%S}] fileLine:{__file__}:{lineno} "
            f"funcName:test_line_format_and_caller;message:user alice has 3 items"
        )

    def test_message_without_args_is_verbatim(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)

        log.infof("100% done")
        log.flush()

        assert _lines(log.current_file)[0].endswith(";message:100% done")

    def test_bad_format_does_not_raise(self, tmp_path, make_logger, caplog):
        """格式与参数不匹配时仍写入一行，不向调用方抛出"""
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)

        with caplog.at_level("WARNING", logger="daylog.logger"):
            log.infof("count=%d", "abc")
            log.errorf("%(missing)s", {"other": 1})
        log.flush()

        lines = _lines(log.current_file)
        assert len(lines) == 2
        assert lines[0].endswith("message:count=%d ('abc',)")
        assert all(LINE_RE.match(line) for line in lines)
        assert "Bad log format" in caplog.text

    def test_errorf_makes_level_sticky(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)

        log.infof("before")
        log.errorf("boom")
        log.infof("after")
        log.flush()

        tags = [line.split("]")[0] for line in _lines(log.current_file)]
        assert tags == ["[Info", "[Error", "[Error"]
        assert log.level is Level.ERROR

    def test_errorf_without_sticky_level(self, tmp_path, make_logger):
        log = make_logger(sticky_error_level=False)
        log.configure(Level.INFO, str(tmp_path), 7)

        log.errorf("boom")
        log.infof("after")
        log.flush()

        tags = [line.split("]")[0] for line in _lines(log.current_file)]
        assert tags == ["[Error", "[Info"]
        assert log.level is Level.INFO

    def test_concurrent_producers(self, tmp_path, make_logger):
        """多线程并发写入：行数准确且每行完整"""
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        threads_count, per_thread = 8, 200

        def produce(worker: int) -> None:
            for i in range(per_thread):
                if i % 50 == 0:
                    log.errorf("worker %d message %d", worker, i)
                else:
                    log.infof("worker %d message %d", worker, i)

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        log.close()

        lines = _lines(log.current_file)
        assert len(lines) == threads_count * per_thread
        assert all(LINE_RE.match(line) for line in lines)
        assert all("funcName:produce;" in line for line in lines)
        for n in range(threads_count):
            assert sum(f"message:worker {n} message " in line for line in lines) == per_thread

    def test_write_before_configure(self, make_logger):
        log = make_logger()
        with pytest.raises(LoggerStateError):
            log.infof("too early")

    def test_write_after_close(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        log.close()
        with pytest.raises(LoggerClosedError):
            log.infof("too late")


class TestBackpressure:
    def test_full_queue_blocks_producer(self, tmp_path, make_logger):
        """队列满时调用方阻塞，写入线程腾出空间后继续，不丢消息"""
        log = make_logger(queue_size=1)
        log.configure(Level.INFO, str(tmp_path), 7)

        release = threading.Event()
        real_write = log._writer.write

        def slow_write(line):
            release.wait(5)
            return real_write(line)

        log._writer.write = slow_write

        log.infof("first")   # 写入线程取走后卡在 slow_write
        log.infof("second")  # 占满队列

        third = threading.Thread(target=log.infof, args=("third",))
        third.start()
        third.join(0.3)
        assert third.is_alive()

        release.set()
        third.join(5)
        assert not third.is_alive()

        log.close()
        messages = [line.rsplit("message:", 1)[1] for line in _lines(log.current_file)]
        assert messages == ["first", "second", "third"]


class TestRotation:
    def test_rotation_on_date_change(self, tmp_path, make_logger, clock):
        first_day = clock.now
        log = make_logger(clock=clock)
        log.configure(Level.INFO, str(tmp_path), 30)

        log.infof("day one")
        log.flush()
        old_handle = log._writer._file

        clock.advance(days=1)
        log.infof("day two")
        log.infof("day two again")
        log.flush()

        assert old_handle.closed
        first_file = tmp_path / log_file_name(first_day)
        second_file = tmp_path / log_file_name(clock.now)
        assert log.current_file == second_file
        assert [line.rsplit("message:", 1)[1] for line in _lines(first_file)] == ["day one"]
        assert [line.rsplit("message:", 1)[1] for line in _lines(second_file)] == [
            "day two",
            "day two again",
        ]


class TestRetention:
    def test_startup_sweep_removes_expired_logs(self, tmp_path, make_logger):
        expired = tmp_path / "2020-01-01.log"
        expired.write_text("old\n", encoding="utf-8")
        _age(expired, 30)
        stale_other = tmp_path / "data.csv"
        stale_other.write_text("a,b\n", encoding="utf-8")
        _age(stale_other, 30)

        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        log.wait_for_sweep(5)

        assert not expired.exists()
        assert stale_other.exists()
        assert log.current_file.exists()

    def test_rotation_triggers_sweep(self, tmp_path, make_logger, clock):
        log = make_logger(clock=clock)
        log.configure(Level.INFO, str(tmp_path), 7)
        log.wait_for_sweep(5)

        expired = tmp_path / "2020-01-01.log"
        expired.write_text("old\n", encoding="utf-8")
        _age(expired, 30)

        clock.advance(days=1)
        log.infof("next day")
        log.flush()
        log.wait_for_sweep(5)

        assert not expired.exists()

    def test_active_file_survives_sweep(self, tmp_path, make_logger):
        """当前文件修改时间落后于截止时间也不会被删除"""
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 0)
        log.wait_for_sweep(5)
        _age(log.current_file, 30)

        log.clear_old_logs()

        assert log.current_file.exists()
        log.infof("still writable")
        log.close()
        assert _lines(log.current_file)[-1].endswith("message:still writable")

    def test_clear_old_logs_twice(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        log.wait_for_sweep(5)
        for name in ("a.log", "b.log"):
            path = tmp_path / name
            path.write_text("x\n", encoding="utf-8")
            _age(path, 30)

        first = log.clear_old_logs()
        second = log.clear_old_logs()

        assert first["by_age"] == 2
        assert second["by_age"] == 0
        assert "error" not in second

    def test_clear_old_logs_requires_configure(self, make_logger):
        with pytest.raises(LoggerStateError):
            make_logger().clear_old_logs()


class TestClose:
    def test_close_drains_queue(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)

        for i in range(500):
            log.infof("message %d", i)
        log.close()

        lines = _lines(log.current_file)
        assert len(lines) == 500
        assert lines[-1].endswith("message:message 499")
        assert log._writer._file.closed
        assert not log._writer_thread.is_alive()

    def test_close_is_idempotent(self, tmp_path, make_logger):
        log = make_logger()
        log.configure(Level.INFO, str(tmp_path), 7)
        log.close()
        log.close()
        assert log.closed

    def test_close_without_configure(self, make_logger):
        log = make_logger()
        log.close()
        assert log.closed

    def test_context_manager(self, tmp_path, make_logger):
        with make_logger() as log:
            log.configure(Level.INFO, str(tmp_path), 7)
            log.infof("inside")
        assert log.closed
        assert _lines(log.current_file)[0].endswith("message:inside")
