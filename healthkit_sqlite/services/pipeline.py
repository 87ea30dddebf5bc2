"""Two-stage pipeline: a producer thread feeding a consumer through a bounded queue

The queue is FIFO with a single producer and a single consumer, so
items reach the consumer in exactly the order they were produced.
"""

import logging
import queue
import threading

logger = logging.getLogger(__name__)


_DONE = object()


class _ProducerFailure:
    def __init__(self, error):
        self.error = error


def run_pipeline(produce, consume, queue_size=4096, put_timeout=0.1):
    """Run produce() in a background thread and consume its items here

    With queue_size <= 0 both stages run inline in the calling thread.

    Args:
        produce: Callable returning an iterable of items
        consume: Callable invoked with every item, in order
        queue_size: Maximum number of items buffered between the stages
        put_timeout: Seconds between producer checks for cancellation

    Raises:
        Whatever the producer or the consumer raised first; the other
        stage is stopped before the exception propagates.
    """
    if queue_size <= 0:
        for item in produce():
            consume(item)
        return

    items = queue.Queue(maxsize=queue_size)
    stop = threading.Event()

    def put(item):
        while not stop.is_set():
            try:
                items.put(item, timeout=put_timeout)
                return True
            except queue.Full:
                continue
        return False

    def producer():
        try:
            for item in produce():
                if not put(item):
                    logger.debug("Producer cancelled")
                    return
            put(_DONE)
        except BaseException as e:
            put(_ProducerFailure(e))

    thread = threading.Thread(target=producer, name='xml-producer', daemon=True)
    thread.start()

    try:
        while True:
            item = items.get()
            if item is _DONE:
                break
            if isinstance(item, _ProducerFailure):
                raise item.error
            consume(item)
    finally:
        stop.set()
        thread.join()
