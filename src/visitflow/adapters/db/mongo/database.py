"""
MongoDB connection bootstrap (Motor client + Beanie document registration).
"""

import logging
from typing import List, Type

import certifi
from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from visitflow.core.config import DatabaseSettings

from .models.action_m import ActionMongo
from .models.records_m import (
    CareTaskMongo,
    HealthLogMongo,
    MedicationMongo,
    MedicationReminderMongo,
)
from .models.visit_m import VisitMongo

logger = logging.getLogger("visitflow")

DOCUMENT_MODELS: List[Type[Document]] = [
    VisitMongo,
    ActionMongo,
    MedicationMongo,
    HealthLogMongo,
    MedicationReminderMongo,
    CareTaskMongo,
]


def create_motor_client(database: DatabaseSettings) -> AsyncIOMotorClient:
    """Build a Motor client; TLS is enabled only for Atlas SRV URIs."""
    if database.uri.startswith("mongodb+srv://"):
        return AsyncIOMotorClient(
            database.uri,
            serverSelectionTimeoutMS=database.server_selection_timeout_ms,
            tls=True,
            tlsCAFile=certifi.where(),
            tlsAllowInvalidCertificates=False,
        )
    return AsyncIOMotorClient(
        database.uri,
        serverSelectionTimeoutMS=database.server_selection_timeout_ms,
    )


async def init_database(database: DatabaseSettings) -> AsyncIOMotorClient:
    """Connect and register every document model with Beanie."""
    client = create_motor_client(database)
    await init_beanie(database=client[database.db_name], document_models=DOCUMENT_MODELS)
    logger.info("Database connection established (db=%s)", database.db_name)
    return client
