import sys
import threading
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from singkeys.frame_buffer import AudioFrameBuffer  # noqa: E402


def test_drain_preserves_arrival_order() -> None:
    buf = AudioFrameBuffer()
    buf.push(np.arange(1, 1025, dtype=np.float32))
    buf.push(np.arange(1025, 2049, dtype=np.float32))
    assert len(buf) == 2048
    window = buf.drain_front(2048)
    np.testing.assert_array_equal(window, np.arange(1, 2049, dtype=np.float32))
    assert len(buf) == 0


def test_drain_splits_chunks_and_keeps_remainder() -> None:
    buf = AudioFrameBuffer()
    buf.push([1.0, 2.0, 3.0])
    buf.push([4.0, 5.0])
    first = buf.drain_front(4)
    assert first.tolist() == [1.0, 2.0, 3.0, 4.0]
    assert len(buf) == 1
    buf.push([6.0])
    assert buf.drain_front(2).tolist() == [5.0, 6.0]


def test_drained_window_is_read_only() -> None:
    buf = AudioFrameBuffer()
    buf.push([0.5, 0.25])
    window = buf.drain_front(2)
    with pytest.raises(ValueError):
        window[0] = 1.0


def test_drain_more_than_queued_raises() -> None:
    buf = AudioFrameBuffer()
    buf.push([1.0])
    with pytest.raises(ValueError):
        buf.drain_front(2)
    assert len(buf) == 1


def test_empty_push_is_ignored() -> None:
    buf = AudioFrameBuffer()
    buf.push([])
    assert len(buf) == 0


def test_backlog_cap_drops_oldest(caplog: pytest.LogCaptureFixture) -> None:
    buf = AudioFrameBuffer(max_backlog=4)
    buf.push([1.0, 2.0, 3.0])
    with caplog.at_level("WARNING", logger="singkeys.frame_buffer"):
        buf.push([4.0, 5.0, 6.0])
    assert len(buf) == 4
    assert buf.dropped == 2
    assert buf.drain_front(4).tolist() == [3.0, 4.0, 5.0, 6.0]
    assert "dropped 2 oldest samples" in caplog.text


def test_invalid_backlog_cap() -> None:
    with pytest.raises(ValueError):
        AudioFrameBuffer(max_backlog=0)


def test_concurrent_push_and_drain_lose_nothing() -> None:
    buf = AudioFrameBuffer()
    blocks = 200
    block_size = 64
    drained: list[np.ndarray] = []

    def produce() -> None:
        for i in range(blocks):
            start = i * block_size
            buf.push(np.arange(start, start + block_size, dtype=np.float32))

    producer = threading.Thread(target=produce)
    producer.start()
    total = blocks * block_size
    received = 0
    while received < total:
        if len(buf) >= 100:
            drained.append(buf.drain_front(100))
            received += 100
        elif not producer.is_alive() and len(buf) > 0:
            rest = len(buf)
            drained.append(buf.drain_front(rest))
            received += rest
    producer.join()
    result = np.concatenate(drained)
    np.testing.assert_array_equal(result, np.arange(total, dtype=np.float32))
