"""
Accuracy Scoring
Compares a freshly re-inferred document against the verified original,
field by field.
"""

from typing import Any, List, Mapping, Sequence, Union

from docrecon.schemas.document import Document
from docrecon.schemas.output import AccuracyResult, VerificationResult, VerificationSummary
from docrecon.utils import safe_divide
from docrecon.utils.logging import setup_logging


logger = setup_logging(__name__)


DOCUMENT_FIELDS = [
    "import_number",
    "po_number",
    "end_user_customer_name",
    "end_user_customer_number",
    "work_scope",
    "arc_requirement",
    "tsn",
    "csn",
]

ITEM_FIELDS = [
    "part_number",
    "quantity_ordered",
    "import_price",
    "engine_model",
    "engine_number",
    "serial_number",
]


DocumentLike = Union[Document, Mapping[str, Any], None]


def _get(record: Any, field: str) -> Any:
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def _items(document: DocumentLike) -> List[Any]:
    return list(_get(document, "document_items") or [])


def score_accuracy(original: DocumentLike, verified: DocumentLike) -> AccuracyResult:
    """
    Score a verified document against the original.
    
    Only fields that are non-null in the original are counted; a counted
    field matches on strict equality. Items are compared by position, so an
    inserted or dropped item shifts every later comparison. Every non-null
    field of an item without a counterpart on the other side is counted and
    unmatched. With nothing to count the score is 100.
    
    Args:
        original: Ground-truth document with document_items
        verified: Re-inferred document with document_items
    
    Returns:
        AccuracyResult with percentage, unmatched paths and counts
    """
    unmatched_field_paths: List[str] = []
    total_field_count = 0
    matched_field_count = 0
    
    for field in DOCUMENT_FIELDS:
        expected = _get(original, field)
        if expected is None:
            continue
        total_field_count += 1
        if expected == _get(verified, field):
            matched_field_count += 1
        else:
            unmatched_field_paths.append(f"document.{field}")
    
    original_items = _items(original)
    verified_items = _items(verified)
    
    for i in range(max(len(original_items), len(verified_items))):
        original_item = original_items[i] if i < len(original_items) else None
        verified_item = verified_items[i] if i < len(verified_items) else None
        
        if original_item is None or verified_item is None:
            existing_item = original_item if original_item is not None else verified_item
            for field in ITEM_FIELDS:
                if _get(existing_item, field) is not None:
                    total_field_count += 1
                    unmatched_field_paths.append(f"document_items[{i}].{field}")
            continue
        
        for field in ITEM_FIELDS:
            expected = _get(original_item, field)
            if expected is None:
                continue
            total_field_count += 1
            if expected == _get(verified_item, field):
                matched_field_count += 1
            else:
                unmatched_field_paths.append(f"document_items[{i}].{field}")
    
    accuracy = safe_divide(matched_field_count, total_field_count, default=1.0) * 100
    
    return AccuracyResult(
        accuracy=accuracy,
        unmatched_field_paths=unmatched_field_paths,
        total_field_count=total_field_count,
        matched_field_count=matched_field_count,
    )


def summarize_verification(results: Sequence[VerificationResult]) -> VerificationSummary:
    """Mean accuracy over successful results; failures are counted only."""
    scored = [r.accuracy.accuracy for r in results if r.success and r.accuracy is not None]
    succeeded = len(scored)
    failed = len(results) - succeeded
    mean_accuracy = safe_divide(sum(scored), succeeded)
    
    logger.info(
        f"Verification summary: {succeeded} scored, {failed} failed, "
        f"mean accuracy {mean_accuracy:.2f}%"
    )
    return VerificationSummary(
        mean_accuracy=mean_accuracy,
        succeeded=succeeded,
        failed=failed,
        results=list(results),
    )
