"""Task creation pipeline.

template -> editor -> parser -> resolver -> Conduit. Each stage raises a
:class:`phabtask.errors.PhabTaskError` subclass on failure; nothing here
recovers, so the first error ends the run.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from . import editor as _editor
from .conduit import ArcConduitTransport, ConduitClient, ConduitTransport, HttpConduitTransport
from .config import Settings
from .env_auth import EnvAuthConfig, get_conduit_token
from .errors import ConfigError, ValidationError
from .logging import get_logger
from .models import TaskResult
from .parser import fields_to_map, parse_fields
from .resolver import resolve_fields
from .template import render_template


def build_transport(settings: Settings) -> ConduitTransport:
    if settings.transport == "http":
        if not settings.conduit_uri:
            raise ConfigError("conduit.uri is required for the http transport")
        token = settings.conduit_token or get_conduit_token(EnvAuthConfig())
        if not token:
            raise ConfigError(
                "no Conduit token: set conduit.token or PHABTASK_CONDUIT_TOKEN"
            )
        return HttpConduitTransport(
            uri=settings.conduit_uri, token=token, timeout=settings.timeout
        )
    return ArcConduitTransport(settings.arc_binary)


@dataclass
class RunOutcome:
    fields: dict[str, Any]
    result: TaskResult | None = None


class TaskCreator:
    def __init__(
        self,
        client: ConduitClient,
        *,
        editor: str | None = None,
        keep_file: bool = False,
        defaults: Mapping[str, str] | None = None,
    ) -> None:
        self.client = client
        self.editor = editor
        self.keep_file = keep_file
        self.defaults = dict(defaults or {})
        self.logger = get_logger()

    @classmethod
    def from_settings(cls, settings: Settings, *, editor: str | None = None) -> TaskCreator:
        return cls(
            ConduitClient(build_transport(settings)),
            editor=editor or settings.editor,
            keep_file=settings.keep_temp_file,
            defaults=settings.defaults,
        )

    def compose(self, presets: Mapping[str, str] | None = None) -> str:
        """Open the pre-filled template in the editor and return the result."""
        values = {**self.defaults, **{k: v for k, v in (presets or {}).items() if v}}
        return _editor.edit(render_template(values), editor=self.editor, keep_file=self.keep_file)

    def collect(self, text: str) -> dict[str, str]:
        field_map = fields_to_map(parse_fields(text))
        if not field_map:
            raise ValidationError("no fields set, aborting")
        self.logger.debug("parsed template", fields=sorted(field_map))
        return field_map

    def resolve(self, field_map: Mapping[str, str]) -> dict[str, Any]:
        with self.logger.timed_operation("resolve", level=logging.DEBUG):
            return resolve_fields(field_map, self.client.lookup_phids)

    def submit(self, fields: Mapping[str, Any], extra_args: Sequence[str] = ()) -> TaskResult:
        self.logger.info("Sending to conduit ...", operation="submit")
        with self.logger.timed_operation("submit", level=logging.DEBUG):
            result = self.client.create_task(fields, extra_args)
        self.logger.info(f"Task successfully created at {result.uri}", uri=result.uri)
        return result

    def run(
        self,
        text: str | None = None,
        *,
        presets: Mapping[str, str] | None = None,
        extra_args: Sequence[str] = (),
        dry_run: bool = False,
    ) -> RunOutcome:
        """Run the whole pipeline; ``text`` skips the editor when given."""
        if text is None:
            text = self.compose(presets)
        fields = self.resolve(self.collect(text))
        if dry_run:
            return RunOutcome(fields=fields)
        return RunOutcome(fields=fields, result=self.submit(fields, extra_args))


__all__ = ["TaskCreator", "RunOutcome", "build_transport"]
