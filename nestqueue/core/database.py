# nestqueue/core/database.py
import logging

import pymongo
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from nestqueue.core.config import Settings


def create_client(settings: Settings) -> MongoClient:
    # Connection is lazy; nothing touches the network until the first operation.
    return MongoClient(
        settings.MONGO_URI,
        server_api=ServerApi("1"),
        tz_aware=True,
        serverSelectionTimeoutMS=int(settings.CONNECT_TIMEOUT_SECONDS * 1000),
    )


def ping(client: MongoClient, timeout: float, logger: logging.Logger) -> None:
    """Check the cluster is reachable within `timeout` seconds."""
    try:
        with pymongo.timeout(timeout):
            client.admin.command("ping")
    except PyMongoError:
        logger.error("failed to connect to MongoDB cluster", exc_info=True)
        raise


def get_collection(client: MongoClient, settings: Settings) -> Collection:
    return client[settings.MONGO_DATABASE][settings.MONGO_COLLECTION]


def close_client(client: MongoClient, logger: logging.Logger) -> None:
    try:
        client.close()
    except PyMongoError:
        logger.error("failed to disconnect MongoDB client", exc_info=True)
