"""
VisitFlow: audio visit processing backend

Drives recorded visits through transcription and AI summarization, with
client retries, idempotent provider webhooks, cursor-paginated listings
and retention purging of soft-deleted records.
"""

__version__ = "0.1.0"
__author__ = "VisitFlow Team"
__description__ = "Audio visit processing lifecycle service"
