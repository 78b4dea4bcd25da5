import collections
import queue
import time

import psutil
from rich.console import Console
from rich.table import Table

from lucasLehmer import mersenne_digits

POLL_INTERVAL = 0.5

# kinds of event a worker can emit
LUCAS_LEHMER_REQUIRED = "lucas-lehmer-required"
VERDICT = "verdict"

Event = collections.namedtuple(
    "Event", ["kind", "worker_id", "p", "verdict", "duration"], defaults=(None, 0.0)
)


def timestamp(now=None):
    if now is None:
        now = time.time()
    return time.strftime("%Y/%m/%d %H:%M:", time.gmtime(now))


# -------------------------------------------------
# LOGGING SINK
# -------------------------------------------------

class ConsoleLog:
    """Timestamped lines on a rich console, one print per line."""

    def __init__(self, console=None):
        self.console = console or Console(highlight=False)

    def line(self, message, style=None):
        text = f"{timestamp()} {message}"
        if style:
            text = f"[{style}]{text}[/{style}]"
        self.console.print(text, highlight=False, soft_wrap=True)

    def lucas_lehmer_required(self, p):
        self.line(f"Lucas-Lehmer is required for M{p}", style="yellow")

    def discovered(self, p):
        self.line(f"Discovered Mersenne Prime!! M{p}", style="bold green")
        self.line("Remember to do a full candidacy check.", style="bold green")

    def not_prime(self, p):
        self.line(f"-- {p} is not prime.")


# -------------------------------------------------
# REPORTER (consumes worker events)
# -------------------------------------------------

class Reporter:
    def __init__(self, log, events, stop_event, task_queue=None, status_interval=None):
        self.log = log
        self.events = events
        self.stop_event = stop_event
        self.task_queue = task_queue
        self.status_interval = status_interval

        self.start_time = time.time()
        self.checked = 0
        self.ll_runs = 0
        self.found = []
        self.biggest_p = 0
        self.max_digits = 0
        self.current_p = None
        self.total_time = 0.0
        self.workers = {}      # worker_id -> {"p": last p, "processed": count, "p_time": last eval time}

    def handle(self, event):
        if event.kind == LUCAS_LEHMER_REQUIRED:
            self.ll_runs += 1
            self.log.lucas_lehmer_required(event.p)
            return

        self.checked += 1
        self.current_p = event.p if self.current_p is None else max(self.current_p, event.p)
        self.total_time += event.duration
        info = self.workers.setdefault(event.worker_id, {"p": None, "processed": 0, "p_time": 0.0})
        info["p"] = event.p
        info["processed"] += 1
        info["p_time"] = event.duration

        if event.verdict.is_prime:
            self.found.append(event.p)
            if event.p > self.biggest_p:
                self.biggest_p = event.p
                self.max_digits = mersenne_digits(event.p)
            self.log.discovered(event.p)
        else:
            self.log.not_prime(event.p)

    def drain(self):
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return
            self.handle(event)

    def run(self):
        last_status = time.time()
        while not self.stop_event.is_set():
            try:
                event = self.events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                event = None
            if event is not None:
                self.handle(event)

            if self.status_interval and time.time() - last_status >= self.status_interval:
                self.render_status()
                last_status = time.time()

        # whatever the workers emitted before stopping still gets reported
        self.drain()

    # dashboard rendering
    def status_table(self):
        elapsed = max(time.time() - self.start_time, 0.001)
        table = Table(title="Mersenne search")
        table.add_column("Elapsed", style="bright_blue")
        table.add_column("Checked", style="green")
        table.add_column("Exponents/sec", style="yellow")
        table.add_column("Current p", style="magenta")
        table.add_column("Avg eval time", style="yellow")
        table.add_column("Lucas-Lehmer runs", style="magenta")
        table.add_column("Queued", style="cyan")
        table.add_column("CPU (%)", style="bright_magenta")
        table.add_column("Largest p found", style="bright_red")
        table.add_row(
            f"{elapsed:.1f}s",
            str(self.checked),
            f"{self.checked / elapsed:.2f}",
            str(self.current_p if self.current_p is not None else "-"),
            f"{self.avg_eval_time():.4f}s",
            str(self.ll_runs),
            str(self.task_queue.count) if self.task_queue is not None else "-",
            f"{psutil.cpu_percent(interval=None):.1f}",
            str(self.biggest_p or "-"),
        )
        return table

    def avg_eval_time(self):
        return self.total_time / self.checked if self.checked else 0.0

    def worker_table(self):
        table = Table(title="Workers")
        table.add_column("Worker", style="cyan")
        table.add_column("Current p", style="magenta")
        table.add_column("Processed", style="green")
        table.add_column("Last p calc time", style="yellow")
        for wid, info in sorted(self.workers.items()):
            table.add_row(str(wid), str(info["p"]), str(info["processed"]), f"{info['p_time']:.4f}s")
        return table

    def render_status(self):
        self.log.console.print(self.status_table())
        self.log.console.print(self.worker_table())

    def summary(self):
        console = self.log.console
        console.print(f"[bold yellow]Total elapsed time:[/bold yellow] {time.time() - self.start_time:.2f}s")
        console.print(f"[bold green]Exponents checked:[/bold green] {self.checked}")
        console.print(f"[bold green]Lucas-Lehmer runs:[/bold green] {self.ll_runs}")
        console.print(f"[bold green]Mersenne primes found:[/bold green] {len(self.found)}")
        console.print(f"[green]p values:[/green] {sorted(self.found)}")
        if self.biggest_p:
            console.print(f"[green]Length of largest Mersenne prime:[/green] {self.max_digits} digits")
