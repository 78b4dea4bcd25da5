import queue
import threading


class QueueFull(queue.Full):
    pass


class QueueEmpty(queue.Empty):
    pass


# -------------------------------------------------
# BOUNDED TASK QUEUE
# -------------------------------------------------

class BoundedTaskQueue:
    """
    Fixed size circular buffer shared by one producer and many workers.

    free_slots counts empty slots (starts at capacity), filled_slots counts
    buffered items (starts at 0). The lock only guards head/tail/count, so a
    blocked producer or worker never holds it while waiting.
    """

    def __init__(self, capacity=100):
        if capacity < 1:
            raise ValueError(f"queue capacity must be at least 1, got {capacity}")

        self.capacity = capacity
        self._slots = [None] * capacity
        self._head = 0
        self._tail = 0
        self._count = 0

        self._lock = threading.Lock()
        self._free_slots = threading.Semaphore(capacity)
        self._filled_slots = threading.Semaphore(0)

        self.enqueued = 0
        self.dequeued = 0

    def enqueue(self, item, timeout=None):
        if not self._free_slots.acquire(timeout=timeout):
            raise QueueFull(f"no free slot after {timeout}s")
        self._put(item)

    def dequeue(self, timeout=None):
        if not self._filled_slots.acquire(timeout=timeout):
            raise QueueEmpty(f"nothing queued after {timeout}s")
        return self._take()

    def try_enqueue(self, item):
        if not self._free_slots.acquire(blocking=False):
            return False
        self._put(item)
        return True

    def try_dequeue(self):
        if not self._filled_slots.acquire(blocking=False):
            return False, None
        return True, self._take()

    # caller must already own a free slot
    def _put(self, item):
        with self._lock:
            self._slots[self._tail] = item
            self._tail = (self._tail + 1) % self.capacity
            self._count += 1
            self.enqueued += 1
        self._filled_slots.release()

    # caller must already own a filled slot
    def _take(self):
        with self._lock:
            item = self._slots[self._head]
            self._slots[self._head] = None
            self._head = (self._head + 1) % self.capacity
            self._count -= 1
            self.dequeued += 1
        self._free_slots.release()
        return item

    @property
    def count(self):
        with self._lock:
            return self._count

    def __len__(self):
        return self.count

    def empty(self):
        return self.count == 0

    def full(self):
        return self.count == self.capacity

    def __repr__(self):
        return f"BoundedTaskQueue(count={self.count}, capacity={self.capacity})"
