from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Field:
    """One ``Label:`` section of an edited task template.

    ``label`` keeps the spelling used in the text, ``key`` is the canonical
    Conduit parameter name the label maps to.
    """

    label: str
    key: str
    value: str


@dataclass(frozen=True)
class TaskResult:
    uri: str
    object_name: str


__all__ = ["Field", "TaskResult"]
