"""
Read-side status normalization tests.
"""

import pytest

from visitflow.domain.entities.visit import Visit
from visitflow.domain.enums.processing import ProcessingStatus
from visitflow.domain.status import normalize_visit_status


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_status_reads_as_pending(raw):
    assert normalize_visit_status(raw) == ProcessingStatus.PENDING


def test_unknown_status_reads_as_pending():
    assert normalize_visit_status("queued_for_review") == ProcessingStatus.PENDING


def test_completed_without_summary_is_finalizing():
    assert normalize_visit_status("completed", None) == ProcessingStatus.FINALIZING
    assert normalize_visit_status("completed", "  ") == ProcessingStatus.FINALIZING


def test_completed_with_summary_stays_completed():
    assert normalize_visit_status("completed", "All good") == ProcessingStatus.COMPLETED


def test_known_values_are_case_and_whitespace_insensitive():
    assert normalize_visit_status(" Transcribing ") == ProcessingStatus.TRANSCRIBING
    assert normalize_visit_status(ProcessingStatus.FAILED) == ProcessingStatus.FAILED


def test_visit_exposes_normalized_status_without_touching_stored_value():
    visit = Visit(visit_id="VISIT-1", owner_user_id="u", processing_status="completed", summary=None)

    assert visit.normalized_status == ProcessingStatus.FINALIZING
    assert visit.processing_status_value() == "completed"
