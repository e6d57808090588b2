from __future__ import annotations

import re
from collections.abc import Iterable

from .logging import get_logger
from .models import Field
from .template import FIELD_KEYS, LABEL_FOR_KEY

_label_re = re.compile(r'^(\w+):', re.MULTILINE)


def parse_fields(text: str) -> list[Field]:
    """Split edited template text into fields, in source order.

    Only recognised labels delimit values, so a line such as ``Note: ...``
    inside a description stays part of the description. Empty values are
    dropped and nothing here raises.
    """
    matches: list[tuple[re.Match[str], str]] = []
    for m in _label_re.finditer(text):
        key = FIELD_KEYS.get(m.group(1).lower())
        if key is not None:
            matches.append((m, key))

    fields: list[Field] = []
    for i, (m, key) in enumerate(matches):
        end = matches[i + 1][0].start() if i + 1 < len(matches) else len(text)
        value = text[m.end() : end].strip()
        if value:
            fields.append(Field(label=m.group(1), key=key, value=value))
    return fields


def fields_to_map(fields: Iterable[Field]) -> dict[str, str]:
    """Collapse fields into a parameter map; a repeated label wins last."""
    out: dict[str, str] = {}
    for f in fields:
        if f.key in out:
            get_logger().warning(
                f"label {f.label!r} given more than once; using the last value",
                field=f.key,
            )
        out[f.key] = f.value
    return out


def render_fields(fields: Iterable[Field]) -> str:
    """Serialise fields back into ``Label: value`` blocks.

    The value starts on the label line so its first line can never be taken
    for a label when the text is parsed again.
    """
    blocks = [f'{LABEL_FOR_KEY.get(f.key, f.label)}: {f.value}\n' for f in fields]
    return '\n'.join(blocks)


__all__ = ["parse_fields", "fields_to_map", "render_fields"]
