"""Contact records, fingerprints and the contact sources."""

import dataclasses

import pytest

from voicedialer.contacts import (
    ID_UNDEFINED,
    KIND_HOME,
    KIND_MOBILE,
    KIND_WORK,
    PHONE_ID_COUNT,
    ContactRecord,
    ContactStore,
    JsonContactFile,
    fingerprint,
)


def test_phone_ids_order():
    record = ContactRecord(1, "A", 2, 3, 4, 5, 6, 7)
    assert record.phone_ids() == (1, 2, 3, 4, 5, 6, 7)
    assert PHONE_ID_COUNT == 7


def test_fingerprint_ignores_order_and_duplicates(contacts):
    assert fingerprint(contacts) == fingerprint(list(reversed(contacts)))
    assert fingerprint(contacts) == fingerprint(contacts + contacts[:1])


def test_fingerprint_changes_with_ids_and_names(contacts):
    base = fingerprint(contacts)
    renamed = [dataclasses.replace(contacts[0], name="Jack Jonas")] + contacts[1:]
    renumbered = [dataclasses.replace(contacts[0], home_id=13)] + contacts[1:]
    assert fingerprint(renamed) != base
    assert fingerprint(renumbered) != base
    assert fingerprint([]) != base


def test_json_contact_file_round_trip(tmp_path, contacts):
    source = JsonContactFile(tmp_path / "contacts.json")
    source.write(contacts)
    assert source.get_contacts() == contacts
    assert source == JsonContactFile(tmp_path / "contacts.json")


def test_json_contact_file_defaults():
    assert ContactRecord.from_dict({"contact_id": "4", "name": "Dee"}) == ContactRecord(4, "Dee")


@pytest.fixture
def store(config, tmp_path):
    config.set("contacts.db_path", str(tmp_path / "contacts.db"))
    return ContactStore(config)


def test_store_builds_records(store):
    jack = store.add_contact("Jack Jones")
    home = store.add_phone(jack, KIND_HOME, "6505551111", primary=True)
    mobile = store.add_phone(jack, KIND_MOBILE, "6505552222")
    second_home = store.add_phone(jack, KIND_HOME, "6505553333")
    pager = store.add_phone(jack, "pager", "6505554444")
    store.add_contact("No Phone")

    contacts = store.get_contacts()

    assert contacts == [ContactRecord(
        contact_id=jack, name="Jack Jones", primary_id=home, home_id=home,
        mobile_id=mobile, work_id=ID_UNDEFINED, other_id=ID_UNDEFINED, fallback_id=pager,
    )]
    assert second_home not in contacts[0].phone_ids()
    assert store.phone_number(mobile) == "6505552222"
    assert store.phone_number(999) is None


def test_store_kind_is_case_insensitive(store):
    jill = store.add_contact("Jill")
    work = store.add_phone(jill, KIND_WORK.lower(), "123")
    assert store.get_contacts()[0].work_id == work


def test_last_outgoing_number(store):
    assert store.last_outgoing_number() is None
    store.record_call("111")
    store.record_call("222")
    store.record_call("333", outgoing=False)
    assert store.last_outgoing_number() == "222"
