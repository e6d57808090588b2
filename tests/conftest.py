"""Pytest configuration for phabtask tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import json
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from phabtask import logging as phab_logging  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    # The global logger binds sys.stderr on creation; rebuild it per test so
    # it writes to the stream pytest captures for that test.
    monkeypatch.setattr(phab_logging, "_GLOBAL", None)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "EDITOR",
        "PHABTASK_CONFIG",
        "PHABTASK_TRANSPORT",
        "PHABTASK_ARC",
        "PHABTASK_CONDUIT_URI",
        "PHABTASK_LOG_LEVEL",
        "PHABTASK_QUIET",
        "PHABTASK_CONDUIT_TOKEN",
        "CONDUIT_TOKEN",
        "CONDUIT_API_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


Responder = Callable[[dict[str, Any]], Any]


class FakeArc:
    """Stand-in for ``subprocess.run`` when it launches ``arc call-conduit``.

    ``responses`` maps a Conduit method to the envelope arc should print, or
    to a callable receiving the decoded request and returning the envelope.
    """

    def __init__(self, responses: dict[str, Any], returncode: int = 0):
        self.responses = responses
        self.returncode = returncode
        self.calls: list[tuple[list[str], dict[str, Any]]] = []
        self.run_kwargs: list[dict[str, Any]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        request = json.loads(kwargs.get("input") or "{}")
        self.run_kwargs.append(kwargs)
        self.calls.append((list(cmd), request))
        method = cmd[-1]
        response = self.responses[method]
        if callable(response):
            response = response(request)
        stdout = response if isinstance(response, str) else json.dumps(response)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=stdout)

    def methods(self) -> list[str]:
        return [cmd[-1] for cmd, _ in self.calls]


@pytest.fixture
def fake_arc(monkeypatch: pytest.MonkeyPatch) -> Callable[..., FakeArc]:
    def _install(responses: dict[str, Any], returncode: int = 0) -> FakeArc:
        fake = FakeArc(responses, returncode)
        monkeypatch.setattr("phabtask.conduit.subprocess.run", fake)
        return fake

    return _install


def lookup_from(table: dict[str, str]) -> Responder:
    """phid.lookup responder answering only the names present in ``table``."""

    def _respond(request: dict[str, Any]) -> dict[str, Any]:
        found = {n: {"phid": table[n], "name": n} for n in request["names"] if n in table}
        return {"error": None, "errorMessage": None, "response": found}

    return _respond
