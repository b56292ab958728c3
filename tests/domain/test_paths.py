from __future__ import annotations

from typing import Any

import pytest

from unisync.domain import paths
from unisync.domain.errors import PathConflictError
from unisync.domain.paths import MISSING


def test_get_follows_nested_mappings_and_list_indexes() -> None:
    record = {"properties": {"email": "a@example.com"}, "lines": [{"sku": "A-1"}]}

    assert paths.get(record, "properties.email") == "a@example.com"
    assert paths.get(record, "lines.0.sku") == "A-1"


def test_get_distinguishes_missing_from_explicit_none() -> None:
    record = {"properties": {"phone": None}, "owner": None}

    assert paths.get(record, "properties.phone", MISSING) is None
    assert paths.get(record, "properties.fax", MISSING) is MISSING
    assert paths.get(record, "owner.name", MISSING) is MISSING
    assert paths.get(record, "lines.3.sku", MISSING) is MISSING
    assert paths.get("scalar", "anything") is None


def test_set_creates_intermediate_mappings() -> None:
    target: dict[str, Any] = {}

    paths.set(target, "properties.address.city", "London")
    paths.set(target, "properties.email", "a@example.com")

    assert target == {"properties": {"address": {"city": "London"}, "email": "a@example.com"}}


def test_set_replaces_none_intermediate() -> None:
    target: dict[str, Any] = {"properties": None}

    paths.set(target, "properties.email", "a@example.com")

    assert target == {"properties": {"email": "a@example.com"}}


def test_set_refuses_to_overwrite_scalar_intermediate() -> None:
    target: dict[str, Any] = {"properties": "flat"}

    with pytest.raises(PathConflictError, match="properties"):
        paths.set(target, "properties.email", "a@example.com")

    assert target == {"properties": "flat"}


def test_set_writes_into_existing_list_elements_only() -> None:
    target: dict[str, Any] = {"lines": [{"sku": "A-1"}]}

    paths.set(target, "lines.0.qty", 3)
    assert target["lines"] == [{"sku": "A-1", "qty": 3}]

    with pytest.raises(PathConflictError):
        paths.set(target, "lines.1.qty", 3)


@pytest.mark.parametrize("path", ["", "a..b", ".a", "a.", "a. .b"])
def test_malformed_paths_are_rejected(path: str) -> None:
    with pytest.raises(PathConflictError):
        paths.split_path(path)
