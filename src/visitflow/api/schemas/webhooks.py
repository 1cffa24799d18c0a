"""
AssemblyAI webhook payload schemas.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AssemblyAIWebhookPayload(BaseModel):
    """Body AssemblyAI posts when a transcript finishes."""

    model_config = ConfigDict(extra="ignore")

    transcript_id: str = Field(..., min_length=1, description="AssemblyAI transcript ID")
    status: Literal["completed", "error"]
    text: Optional[str] = None
    error: Optional[str] = None


class WebhookAckResponse(BaseModel):
    result: str
    message: str
    visit_id: Optional[str] = None
