import logging

import mongomock
import pytest
from fastapi.testclient import TestClient

from nestqueue.main import create_app
from nestqueue.ticket.services import TicketStore


@pytest.fixture
def collection():
    return mongomock.MongoClient().db.collection


@pytest.fixture
def store(collection):
    return TicketStore(collection, logging.getLogger("nestqueue.tests"))


@pytest.fixture
def client(store):
    app = create_app(store=store)
    return TestClient(app)


@pytest.fixture
def ticket_payload():
    return {
        "title": "Printer offline",
        "description": "The second floor printer does not respond",
        "site": "Salinas",
        "category": "Hardware",
        "assignedTo": "jdoe",
        "createdBy": "asmith",
        "priority": 2,
        "status": "open",
    }
