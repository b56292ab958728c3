from __future__ import annotations

import pytest

from unisync.domain.errors import MissingSourceIdError, UnknownMappingError
from unisync.domain.normalization import Normalizer
from unisync.domain.transform import INVALID_TIMESTAMP, UNPARSABLE_INTEGER
from tests.helpers.registry import PERSON, build_registry, hubspot_contact, salesforce_contact


@pytest.fixture
def normalizer() -> Normalizer:
    return Normalizer(build_registry())


def test_splits_values_into_core_and_extended(normalizer: Normalizer) -> None:
    record = normalizer.normalize("Salesforce", "Contact", salesforce_contact(), source_id="003A")

    assert record.canonical_type == PERSON
    assert record.core_data == {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
    }
    assert record.extended_data == {
        "phone": "+44 20 7946 0000",
        "birth_date": "1815-12-10T00:00:00+00:00",
        "loyalty_points": 42,
    }
    assert str(record.identity) == "Salesforce/Contact/003A"
    assert not record.degradations


def test_nested_paths_and_remaps(normalizer: Normalizer) -> None:
    record = normalizer.normalize("HubSpot", "Contact", hubspot_contact())

    assert record.identity.source_entity_id == "hs-1"
    assert record.core_data["first_name"] == "Grace"
    assert record.extended_data["lifetime_value"] == pytest.approx(1999.5)
    assert record.extended_data["is_vip"] is True
    assert record.extended_data["tier"] == "GOLD"


def test_absent_fields_are_omitted_and_explicit_none_is_cleared(normalizer: Normalizer) -> None:
    raw = salesforce_contact(Phone=None)
    del raw["Birthdate"]

    record = normalizer.normalize("Salesforce", "Contact", raw)

    assert "phone" not in record.extended_data
    assert "birth_date" not in record.extended_data
    assert "address" not in record.extended_data
    assert record.cleared_fields == ("phone",)


def test_unparsable_values_degrade_and_are_reported(normalizer: Normalizer) -> None:
    raw = salesforce_contact(Loyalty__c="lots", Birthdate="someday")

    record = normalizer.normalize("Salesforce", "Contact", raw)

    assert record.extended_data["loyalty_points"] == 0
    assert "birth_date" not in record.extended_data
    reasons = {item.canonical_field: item.reason for item in record.degradations}
    assert reasons == {"loyalty_points": UNPARSABLE_INTEGER, "birth_date": INVALID_TIMESTAMP}
    assert record.degradations[0].as_metadata()["source_path"] in {"Loyalty__c", "Birthdate"}


def test_raw_payload_is_copied(normalizer: Normalizer) -> None:
    raw = salesforce_contact(MailingAddress={"city": "London"})

    record = normalizer.normalize("Salesforce", "Contact", raw)
    raw["MailingAddress"]["city"] = "Paris"

    assert record.raw_data["MailingAddress"] == {"city": "London"}
    assert record.extended_data["address"] == {"city": "London"}


def test_explicit_source_id_wins_over_primary_key(normalizer: Normalizer) -> None:
    record = normalizer.normalize("Salesforce", "Contact", salesforce_contact(), source_id=77)

    assert record.identity.source_entity_id == "77"


def test_missing_source_id_is_rejected(normalizer: Normalizer) -> None:
    raw = salesforce_contact()
    del raw["Id"]

    with pytest.raises(MissingSourceIdError):
        normalizer.normalize("Salesforce", "Contact", raw)


def test_unknown_mapping_is_a_configuration_error(normalizer: Normalizer) -> None:
    with pytest.raises(UnknownMappingError):
        normalizer.normalize("Salesforce", "Opportunity", {"Id": "1"})


def test_non_mapping_payload_yields_empty_record(normalizer: Normalizer) -> None:
    record = normalizer.normalize("Salesforce", "Contact", "not a record", source_id="x")

    assert record.core_data == {}
    assert record.extended_data == {}
    assert record.raw_data == "not a record"
