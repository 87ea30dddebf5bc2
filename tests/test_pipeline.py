"""Tests for the producer/consumer pipeline"""

import itertools
import threading

import pytest

from healthkit_sqlite.services.pipeline import run_pipeline


class TestRunPipeline:

    @pytest.mark.parametrize('queue_size', [0, 1, 2, 64])
    def test_items_arrive_in_order(self, queue_size):
        consumed = []

        run_pipeline(lambda: iter(range(1000)), consumed.append, queue_size=queue_size)

        assert consumed == list(range(1000))

    def test_inline_runs_in_calling_thread(self):
        threads = set()

        def produce():
            threads.add(threading.current_thread())
            yield 1

        run_pipeline(produce, lambda item: threads.add(threading.current_thread()), queue_size=0)

        assert threads == {threading.current_thread()}

    def test_producer_runs_in_background_thread(self):
        producer_threads = []

        def produce():
            producer_threads.append(threading.current_thread())
            yield 1

        run_pipeline(produce, lambda item: None, queue_size=4)

        assert producer_threads[0] is not threading.current_thread()

    def test_producer_error_reaches_consumer_thread(self):
        consumed = []

        def produce():
            yield 1
            yield 2
            raise ValueError('parse failed')

        with pytest.raises(ValueError, match='parse failed'):
            run_pipeline(produce, consumed.append, queue_size=4)

        assert consumed == [1, 2]

    def test_consumer_error_stops_producer(self):
        produced = itertools.count()

        def consume(item):
            if item == 10:
                raise RuntimeError('write failed')

        with pytest.raises(RuntimeError, match='write failed'):
            run_pipeline(lambda: produced, consume, queue_size=2, put_timeout=0.01)

        assert not any(thread.name == 'xml-producer' for thread in threading.enumerate())
