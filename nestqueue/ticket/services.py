# nestqueue/ticket/services.py
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from bson import ObjectId
from bson.errors import InvalidDocument, InvalidId
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from nestqueue.ticket.documents import from_document, id_filter, to_document
from nestqueue.ticket.errors import TicketNotFoundError, TicketStoreError
from nestqueue.ticket.models import INT64_MAX, INT64_MIN, Ticket


def _keep(value: Any) -> Any:
    return value


def _int64(value: Any) -> int:
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise OverflowError(f"{number} does not fit in a BSON int64")
    return number


# (document key, accepted JSON types, coercion) for every field a patch may set.
PATCHABLE_FIELDS: tuple[tuple[str, tuple[type, ...], Callable[[Any], Any]], ...] = (
    ("title", (str,), _keep),
    ("description", (str,), _keep),
    ("site", (str,), _keep),
    ("category", (str,), _keep),
    ("assignedTo", (str,), _keep),
    ("priority", (int, float), _int64),
    ("status", (str,), _keep),
)


def utcnow() -> datetime:
    # BSON dates hold milliseconds; truncate so stored and in-memory values agree.
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def build_update(updates: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """Return the ``$set`` document for a partial update.

    Unknown keys and values of the wrong type are dropped. ``updatedAt`` is
    refreshed whenever ``updates`` is non-empty, even if nothing else survived.
    """
    changes: dict[str, Any] = {}
    for key, types, coerce in PATCHABLE_FIELDS:
        if key not in updates:
            continue
        value = updates[key]
        # bool is an int subclass but never a JSON number
        if isinstance(value, bool) or not isinstance(value, types):
            continue
        try:
            changes[key] = coerce(value)
        except (ValueError, OverflowError):
            continue
    if updates:
        changes["updatedAt"] = now
    return changes


# Encoding failures surface before any request reaches the server.
_WRITE_ERRORS = (PyMongoError, InvalidDocument, OverflowError)


def search_filter(query: str) -> dict[str, Any]:
    if not query:
        return {}
    pattern = {"$regex": re.escape(query), "$options": "i"}
    return {"$or": [{"title": pattern}, {"description": pattern}]}


class TicketStore:
    """CRUD operations for tickets kept in a MongoDB collection."""

    def __init__(self, collection: Collection, logger: logging.Logger) -> None:
        self._collection = collection
        self._log = logger.getChild("storage")

    def create_ticket(self, ticket: Ticket) -> str:
        now = utcnow()
        document = to_document(ticket)
        document.pop("_id", None)
        document["createdOn"] = now
        document["updatedAt"] = now

        try:
            result = self._collection.insert_one(document)
        except _WRITE_ERRORS as exc:
            raise TicketStoreError("failed to insert ticket") from exc

        inserted_id = result.inserted_id
        if not isinstance(inserted_id, ObjectId):
            raise TicketStoreError("failed to decode inserted id into an ObjectId")

        self._log.debug("created new ticket id=%s", inserted_id)
        return str(inserted_id)

    def find_ticket(self, ticket_id: str) -> Ticket:
        id_query = self._id_filter(ticket_id)

        try:
            document = self._collection.find_one(id_query)
        except PyMongoError as exc:
            raise TicketStoreError(f"failed to find ticket {ticket_id}") from exc

        if document is None:
            self._log.debug("ticket not found id=%s", ticket_id)
            raise TicketNotFoundError()

        self._log.debug("found ticket id=%s", ticket_id)
        return from_document(document)

    def find_tickets(self, query: str = "") -> list[Ticket]:
        results: list[Ticket] = []
        try:
            for document in self._collection.find(search_filter(query)):
                results.append(from_document(document))
        except PyMongoError as exc:
            raise TicketStoreError("failed to list tickets") from exc

        self._log.debug("retrieved tickets count=%d query=%r", len(results), query)
        return results

    def update_ticket(self, ticket_id: str, updates: Mapping[str, Any]) -> Ticket:
        id_query = self._id_filter(ticket_id)

        for key, value in updates.items():
            self._log.debug("update field key=%s type=%s", key, type(value).__name__)

        changes = build_update(updates, utcnow())
        if changes:
            try:
                self._collection.update_one(id_query, {"$set": changes})
            except _WRITE_ERRORS as exc:
                raise TicketStoreError(f"failed to update ticket {ticket_id}") from exc

        # A missing ticket matches nothing above; the re-read reports it.
        ticket = self.find_ticket(ticket_id)
        self._log.debug("ticket updated id=%s updates=%d", ticket_id, len(updates))
        return ticket

    def delete_ticket(self, ticket_id: str) -> None:
        id_query = self._id_filter(ticket_id)

        try:
            deleted = self._collection.find_one_and_delete(id_query)
        except PyMongoError as exc:
            raise TicketStoreError(f"failed to delete ticket {ticket_id}") from exc

        if deleted is None:
            self._log.debug("ticket not found id=%s", ticket_id)
            raise TicketNotFoundError()

        self._log.debug("deleted ticket id=%s", ticket_id)

    def _id_filter(self, ticket_id: str) -> dict[str, Any]:
        # Malformed identifiers cannot name an existing ticket.
        try:
            return id_filter(ticket_id)
        except InvalidId as exc:
            self._log.debug("id is not a valid ObjectId id=%r", ticket_id)
            raise TicketNotFoundError() from exc
