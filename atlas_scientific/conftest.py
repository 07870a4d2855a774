import threading
import time
from collections import deque

import pytest

from atlas_scientific.drivers.i2c_bus import Transport
from atlas_scientific.protocol import RESPONSE_FRAME_LENGTH, SUCCESS_STATUS


def build_frame(payload: str = "", status: int = SUCCESS_STATUS) -> bytes:
    frame = bytes([status]) + payload.encode("ascii")
    return frame.ljust(RESPONSE_FRAME_LENGTH, b"\x00")


class FakeTransport(Transport):
    """ Records every write and replays queued reply frames in order.
    With nothing queued, the reply is produced by `responder(last_command)`, which
    returns a payload string or a (payload, status) tuple, to simulate a device.
    """

    def __init__(self):
        super().__init__()
        self.writes = []
        self.read_count = 0
        self._frames = deque()
        self.responder = None

    @property
    def commands(self):
        return [data.decode("ascii") for _, data in self.writes]

    def queue_reply(self, payload: str = "", status: int = SUCCESS_STATUS) -> None:
        self._frames.append(build_frame(payload, status))

    def queue_frame(self, frame: bytes) -> None:
        self._frames.append(frame)

    def write(self, address, data):
        self.writes.append((address, data))

    def read(self, address, length):
        assert length == RESPONSE_FRAME_LENGTH
        self.read_count += 1
        if self._frames:
            return self._frames.popleft()
        command = self.commands[-1]
        if self.responder is None:
            raise AssertionError(f"No reply queued for {command!r}")
        reply = self.responder(command)
        if isinstance(reply, tuple):
            return build_frame(*reply)
        return build_frame(reply)


@pytest.fixture
def mock_sleep(mocker):
    # Settle times add up to seconds per test otherwise
    return mocker.patch.object(time, "sleep")


@pytest.fixture
def fake_transport(mock_sleep):
    return FakeTransport()


def _lock_is_free(lock) -> bool:
    """ Whether another thread could take `lock` right now. An RLock is always
    available to the thread that holds it, so the attempt is made from a new thread.
    """
    result = []

    def try_acquire():
        acquired = lock.acquire(blocking=False)
        if acquired:
            lock.release()
        result.append(acquired)

    thread = threading.Thread(target=try_acquire)
    thread.start()
    thread.join()
    return result[0]


@pytest.fixture
def lock_is_free():
    return _lock_is_free


class CountingLock:
    """ Re-entrant lock that counts how many times it was taken from the unlocked state """

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self.outermost_acquisitions = 0

    def acquire(self, blocking=True):
        acquired = self._lock.acquire(blocking)
        if acquired:
            if self._depth == 0:
                self.outermost_acquisitions += 1
            self._depth += 1
        return acquired

    def release(self):
        self._depth -= 1
        self._lock.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, *exc_info):
        self.release()


@pytest.fixture
def counting_lock(fake_transport):
    fake_transport.lock = CountingLock()
    return fake_transport.lock
