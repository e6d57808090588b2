from __future__ import annotations

from collections.abc import Sequence

import pytest

from phabtask.errors import ResolutionError, ValidationError
from phabtask.resolver import normalize_references, resolve_fields, resolve_references


class RecordingLookup:
    def __init__(self, table: dict[str, str]):
        self.table = table
        self.requests: list[list[str]] = []

    def __call__(self, names: Sequence[str]) -> dict[str, str]:
        self.requests.append(list(names))
        return {n: self.table[n] for n in names if n in self.table}


def test_normalize_adds_missing_sigil_once():
    assert normalize_references('backend, #frontend', '#') == ['#backend', '#frontend']
    assert normalize_references('@alice,bob ,  carol', '@') == ['@alice', '@bob', '@carol']
    assert normalize_references('##weird', '#') == ['##weird']


def test_normalize_skips_empty_pieces():
    assert normalize_references(' , alice,, ', '@') == ['@alice']
    assert normalize_references('', '@') == []


def test_projects_lookup_is_batched_with_sigils():
    lookup = RecordingLookup({'#backend': 'PHID-PROJ-1', '#frontend': 'PHID-PROJ-2'})
    assert resolve_references('backend, #frontend', '#', lookup) == ['PHID-PROJ-1', 'PHID-PROJ-2']
    assert lookup.requests == [['#backend', '#frontend']]


def test_result_follows_request_order():
    lookup = RecordingLookup({'@b': 'PHID-B', '@a': 'PHID-A', '@c': 'PHID-C'})
    assert resolve_references('c, a, b', '@', lookup) == ['PHID-C', 'PHID-A', 'PHID-B']


def test_missing_name_is_fatal():
    lookup = RecordingLookup({'@alice': 'PHID-USER-1'})
    with pytest.raises(ResolutionError, match="unable to find the phid of '@ghost'"):
        resolve_references('alice, ghost', '@', lookup)


def test_empty_list_skips_lookup():
    lookup = RecordingLookup({})
    assert resolve_references(' , ', '#', lookup) == []
    assert lookup.requests == []


def test_resolve_fields_owner_becomes_single_phid():
    lookup = RecordingLookup({'@alice': 'PHID-1'})
    resolved = resolve_fields({'title': 'Fix bug', 'ownerPHID': '@alice'}, lookup)
    assert resolved == {'title': 'Fix bug', 'ownerPHID': 'PHID-1'}


def test_resolve_fields_two_owners_is_fatal():
    lookup = RecordingLookup({'@alice': 'PHID-1', '@bob': 'PHID-2'})
    with pytest.raises(ValidationError, match='you should specify just 1 owner got: 2'):
        resolve_fields({'ownerPHID': 'alice, bob'}, lookup)


def test_resolve_fields_blank_owner_is_fatal():
    with pytest.raises(ValidationError, match='got: 0'):
        resolve_fields({'ownerPHID': ','}, RecordingLookup({}))


def test_resolve_fields_lists_and_passthrough():
    lookup = RecordingLookup({'@bob': 'PHID-U-B', '#ops': 'PHID-P-O'})
    resolved = resolve_fields(
        {'ccPHIDs': 'bob', 'projectPHIDs': 'ops', 'priority': 'high', 'points': '3'}, lookup
    )
    assert resolved == {
        'ccPHIDs': ['PHID-U-B'],
        'projectPHIDs': ['PHID-P-O'],
        'priority': 'high',
        'points': '3',
    }
    assert lookup.requests == [['@bob'], ['#ops']]


def test_resolve_fields_leaves_input_untouched():
    field_map = {'ccPHIDs': 'bob'}
    resolve_fields(field_map, RecordingLookup({'@bob': 'PHID-U-B'}))
    assert field_map == {'ccPHIDs': 'bob'}
