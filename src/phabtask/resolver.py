"""Turn ``@user`` / ``#project`` references into PHIDs.

The resolver only needs a ``lookup`` callable mapping names to PHIDs (for
example :meth:`phabtask.conduit.ConduitClient.lookup_phids`), so it is
independent of how Conduit is reached.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .errors import ResolutionError, ValidationError
from .logging import get_logger

USER_SIGIL = "@"
PROJECT_SIGIL = "#"

Lookup = Callable[[Sequence[str]], Mapping[str, str]]

# parameter -> (sigil, single value)
REFERENCE_FIELDS: dict[str, tuple[str, bool]] = {
    "ownerPHID": (USER_SIGIL, True),
    "ccPHIDs": (USER_SIGIL, False),
    "projectPHIDs": (PROJECT_SIGIL, False),
}


def normalize_references(raw: str, sigil: str) -> list[str]:
    """Split a comma separated list and make sure each name carries ``sigil``."""
    names: list[str] = []
    for piece in raw.split(","):
        name = piece.strip()
        if not name:
            continue
        if not name.startswith(sigil):
            name = sigil + name
        names.append(name)
    return names


def resolve_references(raw: str, sigil: str, lookup: Lookup) -> list[str]:
    """Resolve every reference in ``raw`` with a single lookup call.

    PHIDs are returned in the order the names were written.
    """
    names = normalize_references(raw, sigil)
    if not names:
        return []
    found = lookup(names)
    phids: list[str] = []
    for name in names:
        phid = found.get(name)
        if not phid:
            raise ResolutionError(f"unable to find the phid of {name!r}")
        phids.append(phid)
    return phids


def resolve_fields(field_map: Mapping[str, str], lookup: Lookup) -> dict[str, Any]:
    """Replace reference fields in ``field_map`` by their PHIDs.

    ``ownerPHID`` must resolve to exactly one PHID and is stored as a string;
    ``ccPHIDs`` and ``projectPHIDs`` become lists. Other fields are copied.
    """
    resolved: dict[str, Any] = dict(field_map)
    for key, (sigil, single) in REFERENCE_FIELDS.items():
        raw = field_map.get(key)
        if raw is None:
            continue
        phids = resolve_references(raw, sigil, lookup)
        get_logger().debug(f"resolved {key}", field=key, count=len(phids))
        if single:
            if len(phids) != 1:
                raise ValidationError(f"you should specify just 1 owner got: {len(phids)}")
            resolved[key] = phids[0]
        else:
            resolved[key] = phids
    return resolved


__all__ = [
    "USER_SIGIL",
    "PROJECT_SIGIL",
    "REFERENCE_FIELDS",
    "normalize_references",
    "resolve_references",
    "resolve_fields",
]
