"""Per-file status reporting for conversions

A status object is handed to each conversion and only ever written to;
it has no influence on what the conversion computes.
"""

import contextlib
import typing

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)


class NullStatus:
    """Status sink that discards all updates"""

    def set_message(self, message: str):
        pass

    def set_total(self, total: int):
        pass

    def advance(self, amount: int = 1):
        pass

    def finish(self, message: str = "done"):
        pass


class RichStatus(NullStatus):
    """Status for one input file, shown as a task in a shared rich Progress"""

    def __init__(self, progress: Progress, prefix: str):
        self.progress = progress
        self.total: int | None = None
        self.task_id: TaskID = progress.add_task("", total=None, prefix=prefix)

    def set_message(self, message: str):
        self.progress.update(self.task_id, description=message)

    def set_total(self, total: int):
        self.total = total
        self.progress.update(self.task_id, total=total, completed=0)

    def advance(self, amount: int = 1):
        self.progress.advance(self.task_id, amount)

    def finish(self, message: str = "done"):
        total = self.total if self.total is not None else 1
        self.progress.update(self.task_id, description=message, total=total, completed=total)


def make_progress(console: Console | None = None) -> Progress:
    return Progress(
        TextColumn("{task.fields[prefix]:<30}"),
        SpinnerColumn(),
        TextColumn("{task.description}"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        BarColumn(),
        console=console,
    )


@contextlib.contextmanager
def status_display(enabled: bool = True, console: Console | None = None) -> typing.Iterator[typing.Callable[[str], NullStatus]]:
    """Yield a factory that creates one status object per input file.

    When disabled the factory returns NullStatus instances and nothing is
    rendered.
    """
    if not enabled:
        yield lambda prefix: NullStatus()
        return

    with make_progress(console) as progress:
        yield lambda prefix: RichStatus(progress, prefix)
