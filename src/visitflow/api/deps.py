"""FastAPI dependency providers."""

from functools import lru_cache
from typing import Annotated, List

from fastapi import Depends, Request

from ..adapters.db.mongo.repositories.action_repository import MongoActionRepository
from ..adapters.db.mongo.repositories.soft_delete_repository import (
    default_soft_deletable_collections,
)
from ..adapters.db.mongo.repositories.visit_repository import MongoVisitRepository
from ..adapters.external.summarization_service_openai import OpenAISummarizationService
from ..adapters.external.transcription_service_assemblyai import AssemblyAITranscriptionService
from ..adapters.storage.azure_blob_service import AzureBlobAudioStorageService
from ..application.ports.repositories.action_repo import ActionRepository
from ..application.ports.repositories.soft_delete_repo import SoftDeletableCollection
from ..application.ports.repositories.visit_repo import VisitRepository
from ..application.ports.services.audio_storage_service import AudioStorageService
from ..application.ports.services.summarization_service import SummarizationService
from ..application.ports.services.transcription_service import TranscriptionService
from ..core.config import Settings, get_settings
from .errors import UnauthorizedError


@lru_cache()
def get_visit_repository() -> VisitRepository:
    """Get visit repository instance."""
    return MongoVisitRepository()


@lru_cache()
def get_action_repository() -> ActionRepository:
    return MongoActionRepository()


@lru_cache()
def get_soft_deletable_collections() -> List[SoftDeletableCollection]:
    return default_soft_deletable_collections()


@lru_cache()
def get_transcription_service() -> TranscriptionService:
    """Get transcription service instance (AssemblyAI)."""
    settings = get_settings()
    return AssemblyAITranscriptionService(settings.assemblyai, webhook_secret=settings.webhook.secret)


@lru_cache()
def get_summarization_service() -> SummarizationService:
    """Get summarization service instance (Azure OpenAI)."""
    return OpenAISummarizationService(get_settings().azure_openai)


@lru_cache()
def get_audio_storage_service() -> AudioStorageService:
    return AzureBlobAudioStorageService(get_settings().azure_blob)


def get_app_settings() -> Settings:
    return get_settings()


def get_current_user(request: Request) -> str:
    """
    Get the caller's user ID from request state.

    UserMiddleware binds it from the X-User-ID header before routing.
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise UnauthorizedError("X-User-ID header is required")
    return user_id


# Dependency annotations for FastAPI
VisitRepositoryDep = Annotated[VisitRepository, Depends(get_visit_repository)]
ActionRepositoryDep = Annotated[ActionRepository, Depends(get_action_repository)]
SoftDeletableCollectionsDep = Annotated[
    List[SoftDeletableCollection], Depends(get_soft_deletable_collections)
]
TranscriptionServiceDep = Annotated[TranscriptionService, Depends(get_transcription_service)]
SummarizationServiceDep = Annotated[SummarizationService, Depends(get_summarization_service)]
AudioStorageServiceDep = Annotated[AudioStorageService, Depends(get_audio_storage_service)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
CurrentUserDep = Annotated[str, Depends(get_current_user)]
