"""Conversion between :class:`Ticket` records and MongoDB documents.

Documents carry a native ``ObjectId`` under ``_id``; everything outside this
module only ever sees its 24 character hex form.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from datetime import datetime, timezone
from typing import Any, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ConfigDict, ValidationError

from nestqueue.ticket.errors import TicketDecodeError
from nestqueue.ticket.models import EPOCH, FIELD_KEYS, Ticket


class _TicketDocument(BaseModel):
    """Field types a stored ticket must have; missing or null fields take zero values."""

    model_config = ConfigDict(strict=True, extra="ignore")

    id: str = ""
    title: str = ""
    description: str = ""
    site: str = ""
    category: str = ""
    assigned_to: str = ""
    created_by: str = ""
    priority: int = 0
    status: str = ""
    created_on: datetime = EPOCH
    updated_at: datetime = EPOCH


def parse_id(ticket_id: str) -> ObjectId:
    """Parse a hex identifier, raising ``InvalidId`` when it is malformed."""

    if not isinstance(ticket_id, str):
        raise InvalidId(f"{ticket_id!r} is not a valid ObjectId")
    return ObjectId(ticket_id)


def id_filter(ticket_id: str) -> dict[str, Any]:
    return {"_id": parse_id(ticket_id)}


def to_document(ticket: Ticket) -> dict[str, Any]:
    values = asdict(ticket)
    document: dict[str, Any] = {}
    if ticket.id:
        document["_id"] = parse_id(ticket.id)
    for attr, key in FIELD_KEYS.items():
        document[key] = values[attr]
    return document


def from_document(document: Mapping[str, Any]) -> Ticket:
    values: dict[str, Any] = {}
    if "_id" in document:
        values["id"] = _hex_id(document["_id"])
    for attr, key in FIELD_KEYS.items():
        if document.get(key) is not None:
            values[attr] = _loosen(_as_utc(document[key]))
    try:
        validated = _TicketDocument.model_validate(values)
    except ValidationError as exc:
        raise TicketDecodeError(f"malformed ticket document: {exc}") from exc
    return Ticket(**{f.name: getattr(validated, f.name) for f in fields(Ticket)})


def _hex_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


def _loosen(value: Any) -> Any:
    # Shell clients write numbers as doubles; whole ones are valid integers.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _as_utc(value: Any) -> Any:
    # The driver hands back naive UTC datetimes unless the client is tz aware.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
