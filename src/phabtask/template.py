"""Task template and the label table it is parsed against."""

from __future__ import annotations

from collections.abc import Mapping

# Label (as shown in the template) -> Conduit maniphest.createtask parameter.
TEMPLATE_LABELS: tuple[tuple[str, str], ...] = (
    ("Title", "title"),
    ("Description", "description"),
    ("Owner", "ownerPHID"),
    ("CC", "ccPHIDs"),
    ("Projects", "projectPHIDs"),
    ("Priority", "priority"),
    ("Points", "points"),
)

# Lower-cased label -> parameter; lookups are case-insensitive.
FIELD_KEYS: dict[str, str] = {label.lower(): key for label, key in TEMPLATE_LABELS}

LABEL_FOR_KEY: dict[str, str] = {key: label for label, key in TEMPLATE_LABELS}

TEMPLATE = "".join(f"{label}:\n\n" for label, _ in TEMPLATE_LABELS)


def render_template(values: Mapping[str, str] | None = None) -> str:
    """Return the template, optionally pre-filled.

    ``values`` is keyed by lower-cased label or by parameter name; unknown
    keys are ignored.
    """
    if not values:
        return TEMPLATE
    prefill: dict[str, str] = {}
    for name, value in values.items():
        key = FIELD_KEYS.get(name.lower(), name)
        if key in LABEL_FOR_KEY and value:
            prefill[key] = str(value).strip()
    blocks: list[str] = []
    for label, key in TEMPLATE_LABELS:
        value = prefill.get(key)
        blocks.append(f"{label}:\n{value}\n\n" if value else f"{label}:\n\n")
    return "".join(blocks)


__all__ = [
    "TEMPLATE",
    "TEMPLATE_LABELS",
    "FIELD_KEYS",
    "LABEL_FOR_KEY",
    "render_template",
]
