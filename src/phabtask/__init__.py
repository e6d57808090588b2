"""phabtask - create Phabricator Maniphest tasks from an editor template.

Library use:

from phabtask import TaskCreator, load_config

creator = TaskCreator.from_settings(load_config())
outcome = creator.run(open('task.txt').read(), dry_run=True)
print(outcome.fields)

The CLI (``phabtask`` / ``python -m phabtask``) is a thin layer over
TaskCreator that opens the editor and reports the created task.
"""

from __future__ import annotations

from .config import Settings, load_config
from .conduit import ArcConduitTransport, ConduitClient, HttpConduitTransport
from .core import RunOutcome, TaskCreator
from .errors import PhabTaskError
from .models import Field, TaskResult
from .parser import fields_to_map, parse_fields, render_fields
from .resolver import normalize_references, resolve_fields, resolve_references
from .template import TEMPLATE, render_template

# Keep in sync with pyproject.toml
__version__ = "0.2.0"

__all__ = [
    "Settings",
    "load_config",
    "ArcConduitTransport",
    "HttpConduitTransport",
    "ConduitClient",
    "TaskCreator",
    "RunOutcome",
    "PhabTaskError",
    "Field",
    "TaskResult",
    "parse_fields",
    "fields_to_map",
    "render_fields",
    "normalize_references",
    "resolve_references",
    "resolve_fields",
    "TEMPLATE",
    "render_template",
    "__version__",
]
