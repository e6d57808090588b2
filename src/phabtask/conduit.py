"""Conduit access for phid lookups and task creation.

Two transports implement :class:`ConduitTransport`:

- :class:`ArcConduitTransport` shells out to ``arc call-conduit`` with the
  JSON parameters on stdin. ``arc`` authenticates through ``~/.arcrc``.
- :class:`HttpConduitTransport` posts to ``<uri>/api/<method>`` with an API
  token, for machines without arcanist installed.

Both return the ``arc call-conduit`` envelope
(``{"error", "errorMessage", "response"}``) so :class:`ConduitClient` decodes
a single shape. Neither retries: every failure surfaces as a typed
:mod:`phabtask.errors` exception.
"""

from __future__ import annotations

import json
import shutil
import subprocess  # nosec B404 - required for arc call-conduit
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from .errors import BridgeError, DecodeError, RemoteError
from .logging import get_logger
from .models import TaskResult

DEFAULT_ARC = "arc"
HTTP_ERROR_STATUS = 400
USER_AGENT = "phabtask/0.2.0"

LOOKUP_METHOD = "phid.lookup"
CREATE_TASK_METHOD = "maniphest.createtask"


class ConduitTransport(Protocol):
    def call(
        self, method: str, params: Mapping[str, Any], extra_args: Sequence[str] = ()
    ) -> dict[str, Any]: ...


def decode_envelope(payload: str, *, method: str) -> dict[str, Any]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"invalid JSON from {method}: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError(f"unexpected {type(data).__name__} from {method}, expected an object")
    return data


class ArcConduitTransport:
    """Run ``arc call-conduit [extra_args...] <method>``.

    stdin carries the JSON parameters, stdout is captured and stderr is left
    attached to the terminal so arc's own diagnostics stay visible. There is
    no timeout; a hung arc blocks the run.
    """

    def __init__(self, arc_binary: str = DEFAULT_ARC):
        self.arc_binary = arc_binary
        self._arc_path = shutil.which(arc_binary) or arc_binary

    def command(self, method: str, extra_args: Sequence[str] = ()) -> list[str]:
        return [self._arc_path, "call-conduit", *extra_args, method]

    def call(
        self, method: str, params: Mapping[str, Any], extra_args: Sequence[str] = ()
    ) -> dict[str, Any]:
        cmd = self.command(method, extra_args)
        get_logger().debug("running arc", command=" ".join(cmd))
        try:
            proc = subprocess.run(  # nosec B603 - argument list, no shell
                cmd,
                input=json.dumps(params),
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                check=False,
            )
        except UnicodeDecodeError as exc:
            raise DecodeError(f"undecodable output from {method}: {exc}") from exc
        except OSError as exc:
            raise BridgeError(f"unable to run {self.arc_binary}: {exc}") from exc
        if proc.returncode != 0:
            # arc prints a JSON envelope for Conduit-level failures; prefer its message
            try:
                envelope = decode_envelope(proc.stdout or "", method=method)
            except DecodeError:
                envelope = {}
            message = envelope.get("errorMessage") or envelope.get("error")
            if message:
                raise RemoteError(str(message))
            raise BridgeError(
                f"{self.arc_binary} call-conduit {method} exited with status {proc.returncode}"
            )
        return decode_envelope(proc.stdout, method=method)


@dataclass
class HttpConduitTransport:
    """Call the Conduit HTTP API directly with ``requests``."""

    uri: str
    token: str
    timeout: float = 30.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def endpoint(self, method: str) -> str:
        return f"{self.uri.rstrip('/')}/api/{method}"

    def call(
        self, method: str, params: Mapping[str, Any], extra_args: Sequence[str] = ()
    ) -> dict[str, Any]:
        if extra_args:
            get_logger().warning(
                "extra arc arguments are ignored by the http transport",
                extra_args=list(extra_args),
            )
        body = dict(params)
        body["__conduit__"] = {"token": self.token}
        url = self.endpoint(method)
        try:
            response = self._session.post(
                url,
                data={"params": json.dumps(body), "output": "json", "__conduit__": "1"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BridgeError(f"Conduit request to {url} failed: {exc}") from exc
        if response.status_code >= HTTP_ERROR_STATUS:
            raise BridgeError(f"Conduit {method} failed with HTTP {response.status_code}")
        data = decode_envelope(response.text, method=method)
        return {
            "error": data.get("error_code") or "",
            "errorMessage": data.get("error_info") or "",
            "response": data.get("result"),
        }


class ConduitClient:
    """The two Conduit calls the task pipeline needs."""

    def __init__(self, transport: ConduitTransport):
        self.transport = transport

    @staticmethod
    def _unwrap(envelope: Mapping[str, Any]) -> Any:
        error = envelope.get("error") or ""
        message = envelope.get("errorMessage") or ""
        if error or message:
            raise RemoteError(str(message or error))
        return envelope.get("response")

    def lookup_phids(self, names: Sequence[str]) -> dict[str, str]:
        """Map each name found by ``phid.lookup`` to its PHID.

        Names Conduit does not know are simply absent from the result.
        """
        envelope = self.transport.call(LOOKUP_METHOD, {"names": list(names)})
        response = self._unwrap(envelope)
        if not response:
            # PHP serialises an empty result as [] rather than {}
            return {}
        if not isinstance(response, dict):
            raise DecodeError(f"unexpected {LOOKUP_METHOD} response: {response!r}")
        found: dict[str, str] = {}
        for name, entry in response.items():
            if isinstance(entry, dict) and isinstance(entry.get("phid"), str):
                found[name] = entry["phid"]
        return found

    def create_task(
        self, fields: Mapping[str, Any], extra_args: Sequence[str] = ()
    ) -> TaskResult:
        envelope = self.transport.call(CREATE_TASK_METHOD, fields, extra_args)
        response = self._unwrap(envelope)
        if not isinstance(response, dict):
            raise DecodeError(f"unexpected {CREATE_TASK_METHOD} response: {response!r}")
        return TaskResult(
            uri=str(response.get("uri") or ""),
            object_name=str(response.get("objectName") or ""),
        )


__all__ = [
    "ConduitTransport",
    "ArcConduitTransport",
    "HttpConduitTransport",
    "ConduitClient",
    "decode_envelope",
    "LOOKUP_METHOD",
    "CREATE_TASK_METHOD",
]
