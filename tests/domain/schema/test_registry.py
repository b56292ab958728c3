from __future__ import annotations

import threading

import pytest
from hypothesis import given
from hypothesis import strategies as st

from unisync.domain.errors import (
    ConfigurationError,
    RegistryValidationError,
    UnknownCanonicalTypeError,
    UnknownMappingError,
)
from unisync.domain.model import CanonicalEntity, FieldKind
from unisync.domain.normalization import Normalizer
from unisync.domain.projection import Projector
from unisync.domain.schema import (
    CanonicalType,
    CompatibleTarget,
    EntityDescriptor,
    FieldRule,
    RegistryProvider,
    SchemaRegistry,
    SystemDescriptor,
)
from tests.helpers.registry import (
    INVOICE,
    PERSON,
    PERSON_TARGETS,
    build_registry,
    person_type,
)


def _system(
    *rules: FieldRule, canonical_type: str = PERSON, primary_key: str | None = None
) -> SystemDescriptor:
    entity = EntityDescriptor(
        system="Acme",
        name="Customer",
        canonical_type=canonical_type,
        fields=rules,
        primary_key=primary_key,
    )
    return SystemDescriptor(name="Acme", entities={"Customer": entity})


def test_resolves_descriptors_and_canonical_types() -> None:
    registry = build_registry()

    descriptor = registry.resolve_entity("HubSpot", "Contact")

    assert descriptor.canonical_type == PERSON
    assert registry.canonical_type_for("QuickBooks", "Invoice") == INVOICE
    assert registry.resolve_canonical_type(PERSON).is_core("email")
    assert registry.is_system_supported("Salesforce")
    assert not registry.is_system_supported("Zendesk")


def test_unknown_lookups_raise_configuration_errors() -> None:
    registry = build_registry()

    with pytest.raises(UnknownMappingError) as exc:
        registry.resolve_entity("Salesforce", "Opportunity")
    assert exc.value.system == "Salesforce"
    assert exc.value.entity_type == "Opportunity"

    with pytest.raises(UnknownMappingError):
        registry.resolve_entity("Zendesk", "Ticket")
    with pytest.raises(UnknownCanonicalTypeError):
        registry.resolve_canonical_type("Vehicle")


def test_compatible_targets_follow_declaration_order_and_skip_disabled_systems() -> None:
    registry = build_registry()

    targets = registry.compatible_targets(PERSON)

    assert targets == tuple(CompatibleTarget(system, entity) for system, entity in PERSON_TARGETS)
    assert registry.compatible_targets(INVOICE) == (CompatibleTarget("QuickBooks", "Invoice"),)
    assert registry.compatible_targets("Vehicle") == ()


def test_supported_systems_summarise_every_system() -> None:
    registry = build_registry()

    summaries = {summary.name: summary for summary in registry.supported_systems()}

    assert list(summaries) == ["Salesforce", "HubSpot", "Mailchimp", "QuickBooks", "Legacy"]
    assert summaries["Salesforce"].display_name == "Salesforce CRM"
    assert summaries["Salesforce"].entities == ("Contact",)
    assert summaries["Legacy"].enabled is False
    assert "Legacy" not in registry.enabled_systems()


def test_canonical_type_rejects_core_extended_overlap() -> None:
    with pytest.raises(ConfigurationError, match="email"):
        CanonicalType(name=PERSON, core_fields=("email",), extended_fields=frozenset({"email"}))


def test_validation_collects_every_problem() -> None:
    system = _system(
        FieldRule(path="name", canonical_field="nickname", kind=FieldKind.STRING),
        FieldRule(path="a..b", canonical_field="email", kind=FieldKind.STRING),
        primary_key="id.",
    )

    with pytest.raises(RegistryValidationError) as exc:
        SchemaRegistry.build([system], [person_type()])

    problems = exc.value.problems
    assert len(problems) == 3
    assert any("nickname" in problem for problem in problems)
    assert any("a..b" in problem for problem in problems)
    assert any("primary key" in problem for problem in problems)


def test_validation_rejects_unknown_canonical_type() -> None:
    system = _system(canonical_type="Vehicle")

    with pytest.raises(RegistryValidationError, match="Vehicle"):
        SchemaRegistry.build([system], [person_type()])


def test_validation_accepts_structured_path_with_nested_path() -> None:
    system = _system(
        FieldRule(path="address", canonical_field="address", kind=FieldKind.STRUCTURED),
        FieldRule(path="address.region", canonical_field="tier", kind=FieldKind.STRING),
    )
    registry = SchemaRegistry.build([system], [person_type()])
    entity = CanonicalEntity(
        source_system="Acme",
        source_entity_type="Customer",
        source_entity_id="c-1",
        canonical_type=PERSON,
        core_data={"first_name": "Ada"},
        extended_data={"address": {"city": "Oslo", "zip": "0150"}, "tier": "GOLD"},
    )

    payload = Projector(registry).project(entity, "Acme", "Customer")

    assert payload == {"address": {"city": "Oslo", "zip": "0150", "region": "GOLD"}}


def test_validation_rejects_duplicate_target_paths() -> None:
    system = _system(
        FieldRule(path="email", canonical_field="email", kind=FieldKind.STRING),
        FieldRule(path="email", canonical_field="first_name", kind=FieldKind.STRING),
    )

    with pytest.raises(RegistryValidationError, match="more than once"):
        SchemaRegistry.build([system], [person_type()])


def test_unvalidated_registry_keeps_broken_descriptors() -> None:
    registry = build_registry(broken_mailchimp=True)

    assert any("nickname" in problem for problem in registry.problems())


def test_provider_requires_a_registry_before_use() -> None:
    provider = RegistryProvider()

    assert not provider.is_loaded
    with pytest.raises(ConfigurationError):
        provider.current()


def test_provider_swap_replaces_snapshot_for_new_readers_only() -> None:
    first = build_registry()
    second = SchemaRegistry.build([], [person_type()])
    provider = RegistryProvider(first)

    snapshot = provider.current()
    previous = provider.swap(second)

    assert previous is first
    assert snapshot is first
    assert provider.current() is second
    assert provider.generation == 2


def test_concurrent_swaps_are_serialized() -> None:
    registries = [build_registry() for _ in range(8)]
    provider = RegistryProvider()
    threads = [threading.Thread(target=provider.swap, args=(item,)) for item in registries]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert provider.generation == len(registries)
    assert any(provider.current() is item for item in registries)


field_names = st.from_regex(r"[a-z][a-z_]{0,11}", fullmatch=True)


@given(
    core=st.lists(field_names, unique=True, max_size=8),
    extended=st.frozensets(field_names, max_size=8),
)
def test_canonical_type_rejects_exactly_the_overlapping_declarations(
    core: list[str], extended: frozenset[str]
) -> None:
    if set(core) & extended:
        with pytest.raises(ConfigurationError, match="both core and extended"):
            CanonicalType(name="Thing", core_fields=tuple(core), extended_fields=extended)
    else:
        canonical = CanonicalType(name="Thing", core_fields=tuple(core), extended_fields=extended)
        assert all(canonical.is_core(name) != (name in extended) for name in set(core) | extended)


@st.composite
def split_field_names(draw: st.DrawFn) -> tuple[tuple[str, ...], frozenset[str]]:
    names = draw(st.lists(field_names, unique=True, min_size=1, max_size=12))
    cut = draw(st.integers(min_value=0, max_value=len(names)))
    return tuple(names[:cut]), frozenset(names[cut:])


@given(fields=split_field_names(), value=st.text(max_size=10))
def test_normalized_records_keep_core_and_extended_disjoint(
    fields: tuple[tuple[str, ...], frozenset[str]], value: str
) -> None:
    core, extended = fields
    rules = [
        FieldRule(path=name, canonical_field=name, kind=FieldKind.STRING)
        for name in (*core, *sorted(extended))
    ]
    canonical = CanonicalType(name="Thing", core_fields=core, extended_fields=extended)
    registry = SchemaRegistry.build([_system(*rules, canonical_type="Thing")], [canonical])
    raw = {rule.path: value for rule in rules}

    record = Normalizer(registry).normalize("Acme", "Customer", raw, source_id="c-1")

    assert set(record.core_data).isdisjoint(record.extended_data)
    assert set(record.core_data) == set(core)
    assert set(record.extended_data) == extended
