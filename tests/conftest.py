"""
Shared fixtures: in-memory ports and an API client wired to them.
"""

import os

# Configure before the app module builds its settings at import time
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("STALE_SWEEPER_ENABLED", "false")
os.environ.setdefault("RETENTION_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from fakes import (
    NOW,
    OWNER,
    FakeAudioStorageService,
    FakeSummarizationService,
    FakeTranscriptionService,
    InMemoryActionRepository,
    InMemorySoftDeletableCollection,
    InMemoryVisitRepository,
)
from visitflow.api import deps
from visitflow.core.config import Settings, reset_settings
from visitflow.domain.entities.visit import Visit
from visitflow.domain.enums.processing import ProcessingStatus, VisitStatus


@pytest.fixture
def visit_repo():
    return InMemoryVisitRepository()


@pytest.fixture
def action_repo():
    return InMemoryActionRepository()


@pytest.fixture
def transcription_service():
    return FakeTranscriptionService()


@pytest.fixture
def summarization_service():
    return FakeSummarizationService()


@pytest.fixture
def storage_service():
    return FakeAudioStorageService()


@pytest.fixture
def soft_deletable_collections():
    return [
        InMemorySoftDeletableCollection("actions"),
        InMemorySoftDeletableCollection("visits"),
    ]


@pytest.fixture
def app_settings():
    reset_settings()
    return Settings()


@pytest.fixture
def make_visit():
    """Build a visit owned by OWNER; keyword arguments override any field."""

    def _make(visit_id: str = "VISIT-1", **fields) -> Visit:
        values = {
            "visit_id": visit_id,
            "owner_user_id": OWNER,
            "processing_status": ProcessingStatus.PENDING,
            "status": VisitStatus.PENDING,
            "storage_path": "audio/visit-1.mp3",
            "created_at": NOW,
            "updated_at": NOW,
        }
        values.update(fields)
        return Visit(**values)

    return _make


@pytest.fixture
def client(
    visit_repo,
    action_repo,
    transcription_service,
    summarization_service,
    storage_service,
    soft_deletable_collections,
    app_settings,
):
    """Test client for the FastAPI app with every port swapped for an in-memory fake."""
    from visitflow.app import app

    app.dependency_overrides[deps.get_visit_repository] = lambda: visit_repo
    app.dependency_overrides[deps.get_action_repository] = lambda: action_repo
    app.dependency_overrides[deps.get_transcription_service] = lambda: transcription_service
    app.dependency_overrides[deps.get_summarization_service] = lambda: summarization_service
    app.dependency_overrides[deps.get_audio_storage_service] = lambda: storage_service
    app.dependency_overrides[deps.get_soft_deletable_collections] = lambda: soft_deletable_collections
    app.dependency_overrides[deps.get_app_settings] = lambda: app_settings

    yield TestClient(app)

    app.dependency_overrides.clear()
