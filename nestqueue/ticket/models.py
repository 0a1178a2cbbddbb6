# nestqueue/ticket/models.py
from dataclasses import dataclass
from datetime import datetime, timezone


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# BSON integers are signed 64-bit.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass
class Ticket:
    """An IT support ticket with its workflow metadata."""

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


# Attribute name -> document/JSON key, identifier excluded.
FIELD_KEYS = {
    "title": "title",
    "description": "description",
    "site": "site",
    "category": "category",
    "assigned_to": "assignedTo",
    "created_by": "createdBy",
    "priority": "priority",
    "status": "status",
    "created_on": "createdOn",
    "updated_at": "updatedAt",
}
