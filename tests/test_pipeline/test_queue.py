"""Tests for FeatureQueue: ordered, duplicate-free pending features."""

import threading

from wundergrounded.pipeline.queue import FeatureQueue


class TestEnqueue:
    """Test insertion semantics."""

    def test_starts_empty(self):
        queue = FeatureQueue()
        assert len(queue) == 0
        assert not queue
        assert queue.snapshot() == []

    def test_keeps_insertion_order(self):
        queue = FeatureQueue()
        queue.enqueue("forecast").enqueue("conditions").enqueue("almanac")
        assert queue.snapshot() == ["forecast", "conditions", "almanac"]

    def test_duplicate_is_noop(self):
        """Re-inserting a name keeps a single entry in its original position."""
        queue = FeatureQueue()
        queue.enqueue("conditions")
        queue.enqueue("conditions")
        assert queue.snapshot() == ["conditions"]

        queue.enqueue("forecast").enqueue("conditions")
        assert queue.snapshot() == ["conditions", "forecast"]

    def test_enqueue_returns_queue(self):
        queue = FeatureQueue()
        assert queue.enqueue("tide") is queue

    def test_contains(self):
        queue = FeatureQueue().enqueue("tide")
        assert "tide" in queue
        assert "rawtide" not in queue


class TestDrain:
    """Test atomic draining."""

    def test_drain_returns_contents_and_empties(self):
        queue = FeatureQueue().enqueue("conditions").enqueue("forecast")
        drained = queue.drain_all()

        assert drained == ["conditions", "forecast"]
        assert len(queue) == 0

    def test_drained_list_is_independent(self):
        """Later enqueues never leak into an already drained batch."""
        queue = FeatureQueue().enqueue("conditions")
        drained = queue.drain_all()
        queue.enqueue("forecast")

        assert drained == ["conditions"]
        assert queue.snapshot() == ["forecast"]

    def test_drain_empty_queue(self):
        assert FeatureQueue().drain_all() == []

    def test_concurrent_enqueue_and_drain_loses_nothing(self):
        """Every name ends up in exactly one drained batch."""
        queue = FeatureQueue()
        names = [f"feature{i}" for i in range(500)]
        batches: list[list[str]] = []

        def producer():
            for name in names:
                queue.enqueue(name)

        def consumer():
            for _ in range(200):
                batches.append(queue.drain_all())

        threads = [threading.Thread(target=producer), threading.Thread(target=consumer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        batches.append(queue.drain_all())

        seen = [name for batch in batches for name in batch]
        assert sorted(seen) == sorted(names)
