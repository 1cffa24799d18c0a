"""
Azure OpenAI implementation of SummarizationService.
"""

import json
import logging
import re
from typing import Any, Dict, List

from openai import AsyncAzureOpenAI

from visitflow.application.ports.services.summarization_service import SummarizationService
from visitflow.core.config import AzureOpenAISettings
from visitflow.core.exceptions import ConfigurationError, SummarizationError
from visitflow.domain.entities.visit import VisitSummary

logger = logging.getLogger("visitflow")

SYSTEM_PROMPT = "\n".join(
    [
        "You are a meticulous medical assistant. Always respond with STRICT JSON (no markdown code fences).",
        "Keys required:",
        "  - summary (string): plain-language overview of the visit for the patient",
        "  - diagnoses (array of strings): conditions stated or clearly implied, in standard terms",
        "  - medications (object with started/stopped/changed arrays of medication objects)",
        "  - imaging (array of strings): diagnostic tests ordered during this visit",
        "  - nextSteps (array of strings): concise patient-facing tasks",
        "",
        "Medication object shape:",
        '  {"name": string, "dose": string (optional), "frequency": string (optional),',
        '   "note": string (optional), "original": string (optional, transcript quote),',
        '   "needsConfirmation": boolean}',
        "When unsure about a medication name, include it with needsConfirmation: true.",
        "Use empty arrays when nothing applies.",
    ]
)

_MEDICATION_GROUPS = ("started", "stopped", "changed")


def _ensure_strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, str) and item.strip()]


def _ensure_medications(value: Any) -> Dict[str, List[Any]]:
    medications: Dict[str, List[Any]] = {group: [] for group in _MEDICATION_GROUPS}
    if not isinstance(value, dict):
        return medications
    for group in _MEDICATION_GROUPS:
        entries = value.get(group)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if isinstance(entry, str) and entry.strip():
                medications[group].append({"name": entry.strip()})
            elif isinstance(entry, dict) and str(entry.get("name") or "").strip():
                medications[group].append(entry)
    return medications


def parse_summary_json(content: str) -> VisitSummary:
    """Parse the model's JSON reply into a VisitSummary."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        # Some deployments still wrap JSON in code fences
        match = re.search(r"\{.*\}", content or "", re.DOTALL)
        if not match:
            raise SummarizationError("Summarization model returned an invalid JSON response")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise SummarizationError("Summarization model returned an invalid JSON response") from e

    if not isinstance(data, dict):
        raise SummarizationError("Summarization model returned a non-object JSON response")

    summary = data.get("summary")
    return VisitSummary(
        summary=summary.strip() if isinstance(summary, str) else "",
        diagnoses=_ensure_strings(data.get("diagnoses")),
        medications=_ensure_medications(data.get("medications")),
        imaging=_ensure_strings(data.get("imaging")),
        next_steps=_ensure_strings(data.get("nextSteps", data.get("next_steps"))),
    )


class OpenAISummarizationService(SummarizationService):
    """Summarize transcripts with an Azure OpenAI chat deployment."""

    def __init__(self, settings: AzureOpenAISettings):
        if not (settings.endpoint and settings.api_key):
            raise ConfigurationError(
                "Azure OpenAI is required. Please configure AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY."
            )
        self._settings = settings
        self._client = AsyncAzureOpenAI(
            azure_endpoint=settings.endpoint,
            api_key=settings.api_key,
            api_version=settings.api_version,
        )

    async def summarize(self, transcript: str) -> VisitSummary:
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.deployment_name,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"Visit transcript:\n{transcript}"},
                ],
            )
        except Exception as e:
            logger.error(f"[Summarize] Azure OpenAI request failed: {e}")
            raise SummarizationError(f"Azure OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise SummarizationError("Azure OpenAI returned an empty response")
        return parse_summary_json(content)
