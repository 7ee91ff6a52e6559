"""
Process supervisor for ``glossary serve all``.

Runs the API and the gateway as child processes of one container entry
point.  The group lives and dies together: when any child exits the
others are terminated, and SIGINT/SIGTERM terminate every child.
"""

from __future__ import annotations

import signal
import subprocess
import sys
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger()

TERMINATE_TIMEOUT_S = 5.0


@dataclass
class ChildSpec:
    """A named command to run."""

    name: str
    argv: Sequence[str]
    env: Mapping[str, str] | None = None


@dataclass
class Supervisor:
    """Spawn children, wait for the first exit, then stop the rest.

    Attributes:
        children: Commands to spawn, in start order
        popen: Process factory (``subprocess.Popen`` compatible)
        poll_interval: Seconds between liveness checks
        sleep: Blocking sleep used between checks
    """

    children: list[ChildSpec]
    popen: Callable[..., Any] = subprocess.Popen
    poll_interval: float = 0.5
    sleep: Callable[[float], None] = time.sleep
    processes: dict[str, Any] = field(default_factory=dict, init=False)
    _stopping: bool = field(default=False, init=False)

    def start(self) -> None:
        for child in self.children:
            proc = self.popen(list(child.argv), env=dict(child.env) if child.env is not None else None)
            self.processes[child.name] = proc
            logger.info("child_started", child=child.name, pid=getattr(proc, "pid", None))

    def request_stop(self, signum: int | None = None, frame: Any = None) -> None:
        """Signal handler: ask the watch loop to shut everything down."""
        if signum is not None:
            logger.info("supervisor_signal", signal=signal.Signals(signum).name)
        self._stopping = True

    def watch(self) -> int:
        """Block until a child exits or a stop is requested.

        Returns:
            Exit code of the first child to exit, or 0 on a requested stop
        """
        while not self._stopping:
            for name, proc in self.processes.items():
                code = proc.poll()
                if code is not None:
                    logger.warning("child_exited", child=name, exit_code=code)
                    return code
            self.sleep(self.poll_interval)
        return 0

    def shutdown(self) -> None:
        """Terminate every running child, escalating to kill after a timeout."""
        for name, proc in self.processes.items():
            if proc.poll() is None:
                logger.info("child_terminating", child=name)
                proc.terminate()
        for name, proc in self.processes.items():
            try:
                proc.wait(timeout=TERMINATE_TIMEOUT_S)
            except subprocess.TimeoutExpired:
                logger.warning("child_killed", child=name)
                proc.kill()
                proc.wait()

    def run(self, install_signals: bool = True) -> int:
        """Start, watch and shut down; returns the exit code for the group."""
        if install_signals:
            signal.signal(signal.SIGINT, self.request_stop)
            signal.signal(signal.SIGTERM, self.request_stop)
        self.start()
        try:
            return self.watch()
        finally:
            self.shutdown()
            logger.info("supervisor_stopped")


def glossary_command(*args: str) -> list[str]:
    """argv that runs this CLI under the current interpreter."""
    return [sys.executable, "-m", "glossary", *args]
