# tests/test_ticket_store.py
import dataclasses
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from bson.errors import InvalidDocument
from pymongo.errors import ExecutionTimeout, PyMongoError

from nestqueue.ticket import services
from nestqueue.ticket.errors import TicketDecodeError, TicketNotFoundError, TicketStoreError
from nestqueue.ticket.models import Ticket
from nestqueue.ticket.services import TicketStore, build_update, search_filter


def _new_ticket(**overrides) -> Ticket:
    values = dict(
        title="Laptop will not boot",
        description="Black screen after the BIOS logo",
        site="Gilroy",
        category="Hardware",
        assigned_to="jdoe",
        created_by="asmith",
        priority=1,
        status="open",
    )
    values.update(overrides)
    return Ticket(**values)


def _later(store_ticket: Ticket) -> datetime:
    return store_ticket.updated_at + timedelta(minutes=5)


def _failing_store(**methods) -> TicketStore:
    collection = MagicMock()
    for name, error in methods.items():
        getattr(collection, name).side_effect = error
    return TicketStore(collection, logging.getLogger("nestqueue.tests"))


def test_create_then_find_returns_the_input(store):
    ticket = _new_ticket()
    ticket_id = store.create_ticket(ticket)

    found = store.find_ticket(ticket_id)

    assert len(ticket_id) == 24
    assert found.id == ticket_id
    assert found.created_on == found.updated_at
    assert found.created_on.tzinfo is not None
    expected = dataclasses.replace(
        ticket, id=ticket_id, created_on=found.created_on, updated_at=found.updated_at
    )
    assert found == expected


def test_create_ignores_a_client_supplied_id(store, collection):
    client_id = str(ObjectId())
    ticket_id = store.create_ticket(_new_ticket(id=client_id))
    assert ticket_id != client_id
    assert collection.count_documents({"_id": ObjectId(client_id)}) == 0


def test_create_wraps_driver_errors():
    store = _failing_store(insert_one=PyMongoError("boom"))
    with pytest.raises(TicketStoreError):
        store.create_ticket(_new_ticket())


def test_create_rejects_non_object_id():
    collection = MagicMock()
    collection.insert_one.return_value = MagicMock(inserted_id="not-an-object-id")
    store = TicketStore(collection, logging.getLogger("nestqueue.tests"))
    with pytest.raises(TicketStoreError):
        store.create_ticket(_new_ticket())


def test_find_ticket_with_invalid_id_is_not_found(store):
    with pytest.raises(TicketNotFoundError):
        store.find_ticket("not-a-valid-id")


def test_find_ticket_missing_is_not_found(store):
    with pytest.raises(TicketNotFoundError):
        store.find_ticket(str(ObjectId()))


def test_find_ticket_malformed_document_is_decode_error(store, collection):
    oid = collection.insert_one({"title": ["not", "a", "string"]}).inserted_id
    with pytest.raises(TicketDecodeError):
        store.find_ticket(str(oid))


def test_find_ticket_timeout_is_store_error():
    store = _failing_store(find_one=ExecutionTimeout("operation exceeded time limit"))
    with pytest.raises(TicketStoreError) as info:
        store.find_ticket(str(ObjectId()))
    assert not isinstance(info.value, TicketNotFoundError)


def test_find_tickets_empty_collection_returns_empty_list(store):
    assert store.find_tickets("") == []
    assert store.find_tickets("anything") == []


def test_find_tickets_matches_title_or_description_case_insensitively(store):
    printer = store.create_ticket(_new_ticket(title="PRINTER jam", description="paper stuck"))
    wifi = store.create_ticket(_new_ticket(title="No wifi", description="Printer room has no signal"))
    store.create_ticket(_new_ticket(title="Password reset", description="Locked out"))

    ids = {ticket.id for ticket in store.find_tickets("printer")}

    assert ids == {printer, wifi}
    assert len(store.find_tickets("")) == 3
    assert store.find_tickets("zzz-no-match") == []


def test_find_tickets_treats_query_as_literal_text(store):
    literal = store.create_ticket(_new_ticket(title="Error (code 5)"))
    store.create_ticket(_new_ticket(title="Error code 5"))

    assert [ticket.id for ticket in store.find_tickets("(code 5)")] == [literal]
    assert store.find_tickets(".*") == []


def test_find_tickets_wraps_driver_errors():
    store = _failing_store(find=PyMongoError("boom"))
    with pytest.raises(TicketStoreError):
        store.find_tickets("")


def test_update_with_empty_patch_changes_nothing(store):
    ticket_id = store.create_ticket(_new_ticket())
    before = store.find_ticket(ticket_id)

    assert store.update_ticket(ticket_id, {}) == before


def test_update_status_changes_only_status_and_updated_at(store, monkeypatch):
    ticket_id = store.create_ticket(_new_ticket())
    before = store.find_ticket(ticket_id)
    monkeypatch.setattr(services, "utcnow", lambda: _later(before))

    after = store.update_ticket(ticket_id, {"status": "closed"})

    assert after.status == "closed"
    assert after.updated_at == _later(before)
    assert after.created_on == before.created_on
    assert dataclasses.replace(after, status=before.status, updated_at=before.updated_at) == before


def test_update_ignores_wrong_types_but_refreshes_updated_at(store, monkeypatch):
    ticket_id = store.create_ticket(_new_ticket(priority=4))
    before = store.find_ticket(ticket_id)
    monkeypatch.setattr(services, "utcnow", lambda: _later(before))

    after = store.update_ticket(ticket_id, {"priority": "not-a-number", "unknown": 1})

    assert after.priority == 4
    assert after.updated_at == _later(before)


def test_update_coerces_numeric_priority(store):
    ticket_id = store.create_ticket(_new_ticket())
    assert store.update_ticket(ticket_id, {"priority": 3.7}).priority == 3


def test_update_missing_ticket_is_not_found(store):
    with pytest.raises(TicketNotFoundError):
        store.update_ticket(str(ObjectId()), {"status": "closed"})


def test_update_invalid_id_is_not_found(store):
    with pytest.raises(TicketNotFoundError):
        store.update_ticket("not-a-valid-id", {"status": "closed"})


def test_update_wraps_driver_errors():
    store = _failing_store(update_one=PyMongoError("boom"))
    with pytest.raises(TicketStoreError):
        store.update_ticket(str(ObjectId()), {"status": "closed"})


def test_delete_twice_is_not_found_both_times(store):
    ticket_id = store.create_ticket(_new_ticket())
    store.delete_ticket(ticket_id)

    with pytest.raises(TicketNotFoundError):
        store.delete_ticket(ticket_id)
    with pytest.raises(TicketNotFoundError):
        store.delete_ticket(ticket_id)
    with pytest.raises(TicketNotFoundError):
        store.find_ticket(ticket_id)


def test_delete_invalid_id_is_not_found(store):
    with pytest.raises(TicketNotFoundError):
        store.delete_ticket("not-a-valid-id")


def test_delete_wraps_driver_errors():
    store = _failing_store(find_one_and_delete=PyMongoError("boom"))
    with pytest.raises(TicketStoreError):
        store.delete_ticket(str(ObjectId()))


def test_build_update_whitelist():
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    updates = {
        "title": "New title",
        "description": 12,
        "site": "Salinas",
        "category": None,
        "assignedTo": "mlee",
        "createdBy": "someone-else",
        "priority": True,
        "status": "pending",
        "id": str(ObjectId()),
    }

    assert build_update(updates, now) == {
        "title": "New title",
        "site": "Salinas",
        "assignedTo": "mlee",
        "status": "pending",
        "updatedAt": now,
    }


def test_build_update_drops_non_finite_priority():
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert build_update({"priority": float("nan")}, now) == {"updatedAt": now}
    assert build_update({"priority": 2}, now) == {"priority": 2, "updatedAt": now}


def test_build_update_empty_patch_sets_nothing():
    assert build_update({}, datetime.now(timezone.utc)) == {}


def test_search_filter():
    assert search_filter("") == {}
    pattern = {"$regex": "a\\+b", "$options": "i"}
    assert search_filter("a+b") == {"$or": [{"title": pattern}, {"description": pattern}]}


def test_build_update_drops_priority_outside_int64():
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert build_update({"priority": 2**70}, now) == {"updatedAt": now}
    assert build_update({"priority": -(2**63)}, now) == {"priority": -(2**63), "updatedAt": now}


@pytest.mark.parametrize("error", [OverflowError("MongoDB can only handle up to 8-byte ints"), InvalidDocument("bad")])
def test_create_wraps_encoding_errors(error):
    store = _failing_store(insert_one=error)
    with pytest.raises(TicketStoreError):
        store.create_ticket(_new_ticket(priority=2**70))


def test_update_wraps_encoding_errors():
    store = _failing_store(update_one=InvalidDocument("cannot encode object"))
    with pytest.raises(TicketStoreError):
        store.update_ticket(str(ObjectId()), {"status": "closed"})


def test_list_tolerates_documents_written_by_the_shell(store, collection):
    collection.insert_one({"title": "from shell", "priority": 3.0, "site": None})
    tickets = store.find_tickets("")
    assert [(t.title, t.priority, t.site) for t in tickets] == [("from shell", 3, "")]
