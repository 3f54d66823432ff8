"""
Tests for accuracy scoring.
"""

import pytest

from docrecon.agents.accuracy import score_accuracy, summarize_verification
from docrecon.schemas.document import Document, DocumentItem
from docrecon.schemas.output import AccuracyResult, VerificationResult


def test_identical_documents_score_100(po_document):
    result = score_accuracy(po_document, po_document)
    
    assert result.accuracy == 100.0
    assert result.unmatched_field_paths == []
    assert result.total_field_count == result.matched_field_count


def test_nothing_to_compare_scores_100():
    result = score_accuracy(Document(), Document(po_number="PO-1"))
    
    assert result.accuracy == 100.0
    assert result.total_field_count == 0


def test_null_original_fields_are_not_counted():
    original = {"po_number": "PO-1", "tsn": None, "document_items": []}
    verified = {"po_number": "PO-1", "tsn": "999", "document_items": []}
    
    result = score_accuracy(original, verified)
    assert result.total_field_count == 1
    assert result.accuracy == 100.0


def test_mismatched_fields_are_reported_by_path():
    original = {
        "po_number": "PO-1",
        "work_scope": "OVERHAUL",
        "document_items": [{"part_number": "A100", "quantity_ordered": "5"}],
    }
    verified = {
        "po_number": "PO-1",
        "work_scope": "REPAIR",
        "document_items": [{"part_number": "A100", "quantity_ordered": "6"}],
    }
    
    result = score_accuracy(original, verified)
    assert result.unmatched_field_paths == [
        "document.work_scope",
        "document_items[0].quantity_ordered",
    ]
    assert result.accuracy == 50.0


def test_items_compare_by_position():
    original = Document(document_items=[
        DocumentItem(part_number="A"),
        DocumentItem(part_number="B"),
    ])
    verified = Document(document_items=[
        DocumentItem(part_number="NEW"),
        DocumentItem(part_number="A"),
        DocumentItem(part_number="B", quantity_ordered="1"),
    ])
    
    result = score_accuracy(original, verified)
    assert result.unmatched_field_paths == [
        "document_items[0].part_number",
        "document_items[1].part_number",
        "document_items[2].part_number",
        "document_items[2].quantity_ordered",
    ]
    assert result.total_field_count == 4
    assert result.accuracy == 0.0


def test_missing_verified_items_count_as_unmatched():
    original = {"document_items": [{"part_number": "A", "import_price": "10"}]}
    result = score_accuracy(original, {"document_items": []})
    
    assert result.total_field_count == 2
    assert result.matched_field_count == 0
    assert result.accuracy == 0.0


def test_summary_averages_successful_results_only():
    results = [
        VerificationResult(document_id="a", success=True, accuracy=AccuracyResult(accuracy=100.0)),
        VerificationResult(document_id="b", success=True, accuracy=AccuracyResult(accuracy=50.0)),
        VerificationResult(document_id="c", success=False, message="boom"),
    ]
    summary = summarize_verification(results)
    
    assert summary.mean_accuracy == 75.0
    assert summary.succeeded == 2
    assert summary.failed == 1
    assert len(summary.results) == 3


def test_summary_of_only_failures():
    summary = summarize_verification([VerificationResult(success=False)])
    assert summary.mean_accuracy == 0.0
    assert summary.failed == 1
