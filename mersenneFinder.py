import argparse
import queue
import sys
import threading
import time

from consoleLog import LUCAS_LEHMER_REQUIRED, POLL_INTERVAL, VERDICT, ConsoleLog, Event, Reporter
from lucasLehmer import PRIME_ROUNDS, classify
from taskQueue import BoundedTaskQueue, QueueEmpty, QueueFull

MAX_THREADS = 8         # worker threads
QUEUE_CAPACITY = 100    # exponents buffered ahead of the workers
EVENTS_PER_SLOT = 2     # worker events buffered per queue slot before workers stall
DEFAULT_START = 1


# -------------------------------------------------
# CANDIDATE GENERATOR (producer)
# -------------------------------------------------

def generate_candidates(task_queue, start=DEFAULT_START, stop_event=None, limit=None):
    """
    Push start, start+1, ... into the queue, blocking whenever it is full.

    Without stop_event or limit this never returns. Returns the next exponent
    that would have been queued.
    """
    p = start
    produced = 0
    while limit is None or produced < limit:
        if stop_event is None:
            task_queue.enqueue(p)
        else:
            if stop_event.is_set():
                break
            try:
                task_queue.enqueue(p, timeout=POLL_INTERVAL)
            except QueueFull:
                continue
        p += 1
        produced += 1
    return p


# -------------------------------------------------
# WORKER THREAD
# -------------------------------------------------

def worker(worker_id, task_queue, events, stop_event=None, rounds=PRIME_ROUNDS):
    while stop_event is None or not stop_event.is_set():
        if stop_event is None:
            p = task_queue.dequeue()
        else:
            try:
                p = task_queue.dequeue(timeout=POLL_INTERVAL)
            except QueueEmpty:
                continue

        start = time.time()
        verdict = classify(
            p, rounds,
            on_lucas_lehmer=lambda n: events.put(Event(LUCAS_LEHMER_REQUIRED, worker_id, n)),
        )
        events.put(Event(VERDICT, worker_id, p, verdict, time.time() - start))


# -------------------------------------------------
# WORKER POOL
# -------------------------------------------------

class MersenneFinder:
    def __init__(self, start=DEFAULT_START, workers=MAX_THREADS, capacity=QUEUE_CAPACITY,
                 log=None, status_interval=None):
        self.next_p = start
        self.num_workers = workers
        self.task_queue = BoundedTaskQueue(capacity)
        # bounded too: a stalled console must hold the workers back, not pile up verdicts
        self.events = queue.Queue(maxsize=EVENTS_PER_SLOT * capacity)
        self.stop_event = threading.Event()

        # reporter outlives the workers so their last verdicts still get logged
        self._reporter_stop = threading.Event()
        self.log = log or ConsoleLog()
        self.reporter = Reporter(self.log, self.events, self._reporter_stop,
                                 self.task_queue, status_interval)

        self.threads = []
        self.reporter_thread = None

    def start_workers(self):
        self.reporter_thread = threading.Thread(target=self.reporter.run, name="reporter", daemon=True)
        self.reporter_thread.start()

        for wid in range(self.num_workers):
            t = threading.Thread(
                target=worker,
                args=(wid, self.task_queue, self.events, self.stop_event),
                name=f"worker-{wid}",
                daemon=True,
            )
            t.start()
            self.threads.append(t)

    def run(self, limit=None):
        if not self.threads:
            self.start_workers()
        self.next_p = generate_candidates(self.task_queue, self.next_p, self.stop_event, limit)
        return self.next_p

    def wait_until_checked(self, count, timeout=None):
        deadline = None if timeout is None else time.time() + timeout
        while self.reporter.checked < count:
            if deadline is not None and time.time() > deadline:
                return False
            time.sleep(0.05)
        return True

    def stop(self, timeout=None):
        self.stop_event.set()
        return self.join(timeout)

    def join(self, timeout=None):
        """
        Wait for the workers, then let the reporter drain and wait for it too.
        Returns False, leaving the reporter running, if a worker is still busy.
        """
        for t in self.threads:
            t.join(timeout)
        if any(t.is_alive() for t in self.threads):
            return False
        self._reporter_stop.set()
        if self.reporter_thread is not None:
            self.reporter_thread.join(timeout)
        return True


# -------------------------------------------------
# CONFIG
# -------------------------------------------------

def parse_start(value, default=DEFAULT_START):
    try:
        start = int(value)
    except (TypeError, ValueError):
        return default
    return start if start >= 0 else default


def positive_int(value):
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return n


def build_parser():
    parser = argparse.ArgumentParser(
        prog="mersenne-finder",
        description="Search exponents p for which 2^p - 1 is prime.",
    )
    parser.add_argument("start", nargs="?", default=None,
                        help="first exponent to test (default 1, bad values fall back to 1)")
    parser.add_argument("--workers", type=positive_int, default=MAX_THREADS,
                        help=f"worker threads (default {MAX_THREADS})")
    parser.add_argument("--capacity", type=positive_int, default=QUEUE_CAPACITY,
                        help=f"exponents queued ahead of the workers (default {QUEUE_CAPACITY})")
    parser.add_argument("--status-interval", type=float, default=None,
                        help="seconds between status tables (off by default)")
    return parser


# -------------------------------------------------
# MAIN
# -------------------------------------------------

def main(argv=None):
    args = build_parser().parse_args(argv)
    start = parse_start(args.start)

    log = ConsoleLog()
    log.console.print(
        f"Using {args.workers} worker threads, queue capacity {args.capacity}, starting at p = {start}."
    )

    finder = MersenneFinder(start, args.workers, args.capacity, log, args.status_interval)
    try:
        finder.run()
    except KeyboardInterrupt:
        # workers are daemons, one mid Lucas-Lehmer isn't waited on for long
        finder.stop(timeout=1.0)
        log.console.print("\n[red]Execution stopped by user.[/red]")
        finder.reporter.summary()
    return 0


if __name__ == "__main__":
    sys.exit(main())
