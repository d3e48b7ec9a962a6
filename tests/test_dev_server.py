from __future__ import annotations

import sys

import pytest

from wireless_dev.dev_server import DevServer, DevServerError


def test_stream_forwards_output_and_returns_exit_code() -> None:
    script = "import sys; print('Metro waiting on', sys.argv[1:]); sys.exit(3)"
    server = DevServer([sys.executable, "-c", script], "192.168.1.5")
    lines = []

    code = server.stream(lines.append)

    assert code == 3
    assert lines == ["Metro waiting on ['--host', '192.168.1.5']"]
    server.stop()


def test_missing_executable_raises() -> None:
    server = DevServer(["definitely-not-a-real-binary-xyz"], "192.168.1.5")

    with pytest.raises(DevServerError):
        server.start()


def test_stop_terminates_running_server() -> None:
    server = DevServer([sys.executable, "-c", "import time; time.sleep(30)"], "127.0.0.1")
    proc = server.start()

    server.stop()

    assert proc.poll() is not None
