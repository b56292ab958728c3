from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from unisync.adapters.registry_source import (
    RegistryDocument,
    load_registry,
    load_registry_document,
    translate_registry,
)
from unisync.domain.errors import (
    ConfigurationError,
    RegistryLoadError,
    RegistryValidationError,
)
from unisync.domain.model import FieldKind
from unisync.domain.schema import CompatibleTarget
from tests.helpers.registry import PERSON, registry_document

if TYPE_CHECKING:
    from pathlib import Path


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_loads_camel_case_document_from_json_file(tmp_path: Path) -> None:
    source = _write_json(tmp_path / "registry.json", registry_document())

    registry = load_registry(source)

    descriptor = registry.resolve_entity("Salesforce", "Contact")
    assert descriptor.canonical_type == PERSON
    assert descriptor.primary_key == "Id"
    assert [rule.path for rule in descriptor.fields][:3] == ["FirstName", "LastName", "Email"]
    birth_date = descriptor.field_for("birth_date")
    address = descriptor.field_for("address")
    assert birth_date is not None
    assert birth_date.kind is FieldKind.TIMESTAMP
    assert address is not None
    assert address.kind is FieldKind.STRUCTURED
    assert registry.systems["Salesforce"].display_name == "Salesforce CRM"
    assert registry.compatible_targets(PERSON) == (
        CompatibleTarget("Salesforce", "Contact"),
        CompatibleTarget("HubSpot", "Contact"),
    )


def test_hubspot_rules_default_to_string_and_keep_remaps(tmp_path: Path) -> None:
    registry = load_registry(_write_json(tmp_path / "registry.json", registry_document()))

    descriptor = registry.resolve_entity("HubSpot", "Contact")

    firstname = descriptor.field_for("first_name")
    tier = descriptor.field_for("tier")
    assert firstname is not None
    assert firstname.kind is FieldKind.STRING
    assert tier is not None
    assert tier.kind is FieldKind.ENUMERATED
    assert dict(tier.remap or {}) == {"gold": "GOLD"}


def test_snake_case_names_are_accepted() -> None:
    document = RegistryDocument.model_validate(
        {
            "canonical_types": {"Invoice": {"core_fields": ["number"], "extended_fields": []}},
            "systems": {
                "QuickBooks": {
                    "display_name": "QuickBooks Online",
                    "entities": {
                        "Invoice": {
                            "canonical_type": "Invoice",
                            "primary_key": " ",
                            "fields": {"DocNumber": {"canonical": "number"}},
                        }
                    },
                }
            },
        }
    )

    registry = translate_registry(document)

    descriptor = registry.resolve_entity("QuickBooks", "Invoice")
    assert descriptor.primary_key is None
    assert registry.systems["QuickBooks"].enabled is True


def test_loads_toml_document(tmp_path: Path) -> None:
    source = tmp_path / "registry.toml"
    source.write_text(
        """
[universalTypes.Invoice]
coreFields = ["number", "total"]

[systems.QuickBooks]
displayName = "QuickBooks Online"
type = "accounting"

[systems.QuickBooks.entities.Invoice]
universalType = "Invoice"
primaryKey = "Id"

[systems.QuickBooks.entities.Invoice.fields.DocNumber]
universal = "number"

[systems.QuickBooks.entities.Invoice.fields.TotalAmt]
universal = "total"
type = "float"
""",
        encoding="utf-8",
    )

    registry = load_registry(source)

    total = registry.resolve_entity("QuickBooks", "Invoice").field_for("total")
    assert total is not None
    assert total.kind is FieldKind.DECIMAL


def test_fetches_document_over_http() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(status_code=200, json=registry_document())

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        registry = load_registry("https://config.example.com/registry.json", client=client)

    assert requested == ["https://config.example.com/registry.json"]
    assert registry.is_system_supported("HubSpot")


def test_http_errors_become_load_errors() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=503, text="maintenance")

    with (
        httpx.Client(transport=httpx.MockTransport(handler)) as client,
        pytest.raises(RegistryLoadError, match="503"),
    ):
        load_registry_document("https://config.example.com/registry.json", client=client)


def test_missing_and_malformed_files_fail_loudly(tmp_path: Path) -> None:
    with pytest.raises(RegistryLoadError, match="not found"):
        load_registry(tmp_path / "absent.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(RegistryLoadError):
        load_registry(broken)

    missing_types = _write_json(tmp_path / "no-types.json", {"systems": {}})
    with pytest.raises(RegistryLoadError, match="malformed"):
        load_registry(missing_types)


def test_dangling_field_reference_fails_validation(tmp_path: Path) -> None:
    document = registry_document()
    fields = document["systems"]["Salesforce"]["entities"]["Contact"]["fields"]
    fields["Nickname"] = {"universal": "nickname", "type": "string"}

    with pytest.raises(RegistryValidationError, match="nickname"):
        load_registry(_write_json(tmp_path / "registry.json", document))


def test_unknown_field_type_is_a_configuration_error(tmp_path: Path) -> None:
    document = registry_document()
    fields = document["systems"]["Salesforce"]["entities"]["Contact"]["fields"]
    fields["FirstName"]["type"] = "currency"

    with pytest.raises(ConfigurationError, match="currency"):
        load_registry(_write_json(tmp_path / "registry.json", document))
