"""
Line Item Matching
Pairs purchase order line items with import declaration line items by
(part number, quantity) and flattens each pair into a CSV export record.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from docrecon.schemas.csv_record import CsvRecord, CSV_COLUMNS
from docrecon.schemas.document import Document, DocumentItem
from docrecon.schemas.rules import RuleSet
from docrecon.agents.rules import apply_rules
from docrecon.utils.logging import setup_logging


logger = setup_logging(__name__)


MatchKey = Tuple[str, Optional[str], int]


class MatchConsumptionState:
    """
    Which import items have already been claimed within one export batch.
    
    Keyed by (part_number, quantity, original_index). One instance is shared
    by every PO document of a batch and must be used sequentially.
    """
    
    def __init__(self) -> None:
        self._consumed: Dict[MatchKey, bool] = {}
    
    def is_consumed(self, key: MatchKey) -> bool:
        return self._consumed.get(key, False)
    
    def consume(self, key: MatchKey) -> None:
        self._consumed[key] = True
    
    def __len__(self) -> int:
        return sum(1 for consumed in self._consumed.values() if consumed)


def find_import_match(
    part_number: Optional[str],
    quantity: Optional[str],
    import_items: Optional[Sequence[DocumentItem]],
    state: MatchConsumptionState,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Claim the first unconsumed import item matching (part_number, quantity).
    
    Comparison is exact string equality. A PO item without a part number
    never matches.
    
    Returns:
        (import_price, IMPORT_LINE); both None when nothing is available.
        IMPORT_LINE is the 1-based index of the claimed item, zero-padded
        to two digits.
    """
    if not part_number or not import_items:
        return None, None
    
    for index, import_item in enumerate(import_items):
        if import_item.part_number != part_number or import_item.quantity_ordered != quantity:
            continue
        key = (part_number, quantity, index)
        if state.is_consumed(key):
            continue
        state.consume(key)
        return import_item.import_price, f"{index + 1:02d}"
    
    return None, None


def remove_slashes(value: str) -> str:
    return value.replace("/", "")


def extract_digits(value: str) -> str:
    """Keep only digits, '.' and ','."""
    return re.sub(r"[^\d.,]", "", value)


def format_import_doc_num(import_number: Optional[str]) -> Optional[str]:
    """
    Strip '/' and split the first two characters off with two spaces.
    
    "12/3456789" -> "12  3456789". Values shorter than two characters after
    slash removal pass through; empty values become None.
    """
    stripped = remove_slashes(import_number or "")
    if not stripped:
        return None
    if len(stripped) < 2:
        return stripped
    return f"{stripped[:2]}  {stripped[2:]}"


def format_date(value: Optional[Union[datetime, str]]) -> Optional[str]:
    """Render a date as e.g. 'Thu Jan 15 2026'; None if absent or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return value.strftime("%a %b %d %Y")


def convert_to_csv_records(
    po_document: Document,
    import_document: Optional[Document],
    state: MatchConsumptionState,
) -> List[CsvRecord]:
    """
    One CSV record per line item of a PO document.
    
    `state` must be the batch's shared consumption state; matches claimed
    here stay claimed for every later PO document of the same batch.
    """
    import_items = import_document.document_items if import_document else []
    records = []
    
    for item in po_document.document_items:
        import_price, import_line = find_import_match(
            item.part_number,
            item.quantity_ordered,
            import_items,
            state,
        )
        
        records.append(
            CsvRecord(
                import_doc_num=format_import_doc_num(po_document.import_number),
                IMPORT_LINE=import_line,
                cust_po=po_document.po_number,
                CO_PREFIX=None,
                PRODUCT_CODE=None,
                CUST_CODE=po_document.co_code,
                CUST_NAME=import_document.customer_name if import_document else None,
                item=item.part_number,
                ser_num=None,
                import_price=import_price,
                qty_ordered=extract_digits(item.quantity_ordered or ""),
                engine_model=item.engine_model,
                engine_num=item.engine_number,
                cust_num=po_document.end_user_customer_number,
                end_user_cust_name=po_document.end_user_customer_name,
                WORK_SCOPE=po_document.work_scope,
                cert_num=po_document.arc_requirement,
                order_date=format_date(import_document.receive_date if import_document else None),
                part_rcvd_date=format_date(po_document.receive_date),
                CSN_NUMBER=po_document.csn,
                TSN_NUMBER=po_document.tsn,
            )
        )
    
    return records


def match_line_items(
    po_documents: Sequence[Document],
    import_doc_by_number: Dict[str, Document],
    rules: Optional[RuleSet] = None,
) -> List[CsvRecord]:
    """
    Build CSV records for a whole export batch.
    
    PO documents are processed strictly in order against a single
    MatchConsumptionState owned by this call, so identical
    (part_number, quantity) lines are spread over distinct import lines
    across the entire batch.
    
    Args:
        po_documents: PO documents with their items attached
        import_doc_by_number: import_number -> import document with items
        rules: Optional substitution rules applied to each record
    
    Returns:
        Records in PO document order, then item order
    """
    state = MatchConsumptionState()
    records: List[CsvRecord] = []
    
    for po_document in po_documents:
        import_document = (
            import_doc_by_number.get(po_document.import_number)
            if po_document.import_number
            else None
        )
        if po_document.import_number and import_document is None:
            logger.warning(
                f"Import document {po_document.import_number} not found for PO document {po_document.id}"
            )
        records.extend(convert_to_csv_records(po_document, import_document, state))
    
    if rules is not None and not rules.is_empty():
        records = [apply_rules(rules, record) for record in records]
    
    matched = sum(1 for record in records if record.IMPORT_LINE is not None)
    logger.info(
        f"Matched {matched}/{len(records)} PO line item(s) across {len(po_documents)} document(s)"
    )
    return records


def write_csv(records: Sequence[CsvRecord], path: Union[str, Path]) -> Path:
    """Write records to a CSV file in export column order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = pd.DataFrame(
        [record.model_dump() for record in records],
        columns=CSV_COLUMNS,
    )
    frame.to_csv(path, index=False)
    logger.info(f"Wrote {len(records)} CSV record(s) to {path}")
    return path
