"""A byte source backed by a chain of child processes."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterable

__all__ = ["ChildContainer"]

_log = logging.getLogger(__name__)


class ChildContainer:
    """Reads audio from the last of a chain of processes and cleans them all up.

    The last process's stdout is the byte source. Closing kills the last
    process and waits for every process, last first.
    """

    def __init__(self, children: Iterable[subprocess.Popen]) -> None:
        self._children = list(children)

    def __repr__(self) -> str:
        pids = [child.pid for child in self._children]
        return f"ChildContainer(pids={pids})"

    def read(self, size: int = -1) -> bytes:
        """Read from the last process's stdout; empty once there are no processes."""
        if not self._children:
            return b""
        stdout = self._children[-1].stdout
        if stdout is None:
            raise ValueError("the last child process has no piped stdout")
        return stdout.read(size)

    def close(self) -> None:
        """Kill the last process, then wait for every process in reverse order."""
        children, self._children = self._children, []
        if not children:
            return
        try:
            children[-1].kill()
            for child in reversed(children):
                child.wait()
        except OSError as exc:
            _log.debug("Error awaiting child process: %r", exc)
        finally:
            for child in children:
                if child.stdout is not None:
                    child.stdout.close()

    def __enter__(self) -> ChildContainer:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()