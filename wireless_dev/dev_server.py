# File: wireless_dev/dev_server.py
from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class DevServerError(RuntimeError):
    """Raised when the development server cannot be launched."""


class DevServer:
    """
    Runs the Expo development server bound to a LAN address and streams its
    output line by line to a callback.
    """

    def __init__(self, command: Sequence[str], host: str) -> None:
        """
        :param command: base command, e.g. ['npx', 'expo', 'start']
        :param host: address the server binds to, passed as --host
        """
        self.command: List[str] = [*command, "--host", host]
        self.host = host
        self._proc: Optional[subprocess.Popen] = None

    def start(self) -> subprocess.Popen:
        executable = shutil.which(self.command[0]) or self.command[0]
        logger.debug("Launching %s", " ".join(self.command))
        try:
            proc = subprocess.Popen(
                [executable, *self.command[1:]],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise DevServerError(
                f"'{self.command[0]}' not found; install Node.js so the Expo CLI can run."
            ) from exc
        self._proc = proc
        return proc

    def stream(self, on_line: Callable[[str], None]) -> int:
        """Forward output until the server exits; returns its exit code."""
        proc = self._proc or self.start()
        assert proc.stdout is not None
        for line in proc.stdout:
            on_line(line.rstrip("\n"))
        return proc.wait()

    def stop(self) -> None:
        """
        Stop the server if it is still running.
        """
        if self._proc is None:
            return
        if self._proc.poll() is None:
            self._proc.terminate()
            try:
                self._proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._proc.kill()
        self._proc = None
