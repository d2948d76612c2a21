"""daylog 测试公共夹具"""

import logging
from datetime import datetime, timedelta

import pytest

from daylog import default
from daylog.logger import Logger


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _reset_daylog_state():
    yield
    previous = default.set_logger(None)
    if previous is not None:
        previous.close()
    diag = logging.getLogger("daylog")
    diag.handlers.clear()
    diag.propagate = True
    diag.setLevel(logging.NOTSET)


@pytest.fixture
def clock():
    return FakeClock(datetime.now().replace(hour=12, minute=0, second=0, microsecond=0))


@pytest.fixture
def make_logger():
    """创建 Logger，测试结束时自动关闭"""
    created = []

    def _make(**kwargs) -> Logger:
        log = Logger(**kwargs)
        created.append(log)
        return log

    yield _make

    for log in created:
        log.close()
