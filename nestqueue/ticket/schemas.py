# nestqueue/ticket/schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from nestqueue.ticket.models import INT64_MAX, INT64_MIN, Ticket


class TicketBase(BaseModel):
    title: str = ""
    description: str = ""
    site: str = ""
    category: str = ""
    assigned_to: str = ""
    created_by: str = ""
    priority: int = 0
    status: str = ""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketCreate(TicketBase):
    # Identifiers and timestamps are assigned by the store, never by clients.
    model_config = ConfigDict(extra="ignore")

    priority: StrictInt = Field(default=0, ge=INT64_MIN, le=INT64_MAX)

    def to_ticket(self) -> Ticket:
        return Ticket(**self.model_dump())


class TicketCreated(BaseModel):
    id: str


class TicketOut(TicketBase):
    id: str
    created_on: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketList(BaseModel):
    count: int
    tickets: list[TicketOut]
