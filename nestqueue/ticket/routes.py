# nestqueue/ticket/routes.py
import logging
from typing import Any

import pymongo
from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from nestqueue.core.config import Settings, get_settings
from nestqueue.ticket.errors import TicketError, TicketNotFoundError
from nestqueue.ticket.schemas import TicketCreate, TicketCreated, TicketList, TicketOut
from nestqueue.ticket.services import TicketStore

router = APIRouter(prefix="/api/v1/tickets", tags=["Tickets"])

INTERNAL_ERROR_MESSAGE = "an internal server error occurred"


def get_store(request: Request) -> TicketStore:
    store = getattr(request.app.state, "ticket_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Ticket store is not configured")
    return store


def _handler_logger(request: Request) -> logging.Logger:
    return request.app.state.logger.getChild("handler")


def _deadline(settings: Settings):
    # Store calls run to completion or to this deadline, whatever the client does.
    return pymongo.timeout(settings.STORE_TIMEOUT_SECONDS)


@router.post("", response_model=TicketCreated, status_code=status.HTTP_201_CREATED)
def create(
    ticket: TicketCreate,
    store: TicketStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    with _deadline(settings):
        ticket_id = store.create_ticket(ticket.to_ticket())
    return TicketCreated(id=ticket_id)


@router.get("", response_model=TicketList)
def list_all(
    request: Request,
    response: Response,
    q: str = Query(default="", description="Case-insensitive match on title or description"),
    store: TicketStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    with _deadline(settings):
        tickets = store.find_tickets(q)

    # A search that matches nothing is a 404, but the body is still sent.
    if not tickets and q:
        _handler_logger(request).debug("no tickets found query=%r", q)
        response.status_code = status.HTTP_404_NOT_FOUND

    return TicketList(count=len(tickets), tickets=[TicketOut.model_validate(t) for t in tickets])


@router.get("/{ticket_id}", response_model=TicketOut)
def get(
    ticket_id: str,
    store: TicketStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    with _deadline(settings):
        ticket = store.find_ticket(ticket_id)
    return TicketOut.model_validate(ticket)


@router.put("/{ticket_id}", response_model=TicketOut)
def update(
    ticket_id: str,
    updates: dict[str, Any] = Body(...),
    store: TicketStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    with _deadline(settings):
        ticket = store.update_ticket(ticket_id, updates)
    return TicketOut.model_validate(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    ticket_id: str,
    store: TicketStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    with _deadline(settings):
        store.delete_ticket(ticket_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def ticket_not_found_handler(request: Request, exc: TicketNotFoundError) -> PlainTextResponse:
    _handler_logger(request).debug("%s path=%s", exc, request.url.path)
    return PlainTextResponse(str(exc), status_code=status.HTTP_404_NOT_FOUND)


async def ticket_error_handler(request: Request, exc: TicketError) -> PlainTextResponse:
    _handler_logger(request).error("%s", exc, exc_info=exc)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def bad_request_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    _handler_logger(request).debug("bad request: %s", problems)
    return PlainTextResponse(f"bad request: {problems}", status_code=status.HTTP_400_BAD_REQUEST)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketNotFoundError, ticket_not_found_handler)
    app.add_exception_handler(TicketError, ticket_error_handler)
    app.add_exception_handler(RequestValidationError, bad_request_handler)
