"""
Folding Agent
Folds per-page annotations into one document record plus its line items,
tagging every field with the page it was read from.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from docrecon.state import IngestionState
from docrecon.schemas.annotation import PageAnnotation, parse_page_annotations
from docrecon.schemas.document import (
    Document,
    DocumentItem,
    DocumentType,
    FoldedDocument,
    fields_for,
    page_field,
)
from docrecon.utils.logging import setup_logging, log_agent_action


logger = setup_logging(__name__)


def fold_annotations_to_document(
    annotations: Sequence[Union[PageAnnotation, Dict[str, Any]]],
    page_texts: Sequence[str],
    document_type: Union[DocumentType, str],
) -> Optional[FoldedDocument]:
    """
    Fold page annotations into a document and its items.
    
    Pages are scanned in index order. A non-null value is written onto the
    accumulating record together with the current page as its provenance;
    a later page supplying the same field overwrites it (last write wins).
    Null values never overwrite. Item annotations are correlated across
    pages by object_id; those without one are ignored.
    
    Args:
        annotations: One annotation per physical page, in page order
        page_texts: Text of every physical page
        document_type: purchase_order or import_declaration
    
    Returns:
        FoldedDocument with items in ascending object_id order, or None
        when there is nothing to fold or fewer page texts than annotations.
    """
    if not annotations:
        return None
    
    page_texts = list(page_texts or [])
    if len(page_texts) < len(annotations):
        logger.warning(
            f"Cannot fold {len(annotations)} page annotation(s) onto {len(page_texts)} page text(s)"
        )
        return None
    
    document_type = DocumentType(document_type)
    document_fields, item_fields = fields_for(document_type)
    pages = parse_page_annotations(list(annotations), document_type)
    
    header: Dict[str, Any] = {}
    items_by_object_id: Dict[int, Dict[str, Any]] = {}
    
    for page_index, page in enumerate(pages):
        for name in document_fields:
            value = getattr(page, name)
            if value is not None:
                header[name] = value
                header[page_field(name)] = page_index
        
        for item_annotation in page.items:
            if item_annotation.object_id is None:
                continue
            record = items_by_object_id.setdefault(item_annotation.object_id, {})
            for name in item_fields:
                value = getattr(item_annotation, name)
                if value is not None:
                    record[name] = value
                    record[page_field(name)] = page_index
    
    document = Document(
        document_type=document_type,
        page_texts=list(page_texts),
        **header,
    )
    items = [
        DocumentItem(**items_by_object_id[object_id])
        for object_id in sorted(items_by_object_id)
    ]
    
    logger.debug(
        f"Folded {len(pages)} page(s) into {len(header) // 2} header field(s) "
        f"and {len(items)} item(s)"
    )
    return FoldedDocument(document=document, items=items)


async def folding_agent(state: IngestionState) -> IngestionState:
    """
    Folding Agent node.
    
    Updates state:
    - folded
    - folding_error (if applicable)
    
    Adds reasoning log entry.
    """
    logger.info(f"[FoldingAgent] Folding annotations for document {state.document_id}")
    
    try:
        if not state.inference_result:
            error_msg = "No inference result available for folding"
            logger.error(f"[FoldingAgent] {error_msg}")
            state.folding_error = error_msg
            state.add_reasoning(agent_name="FoldingAgent", message=error_msg)
            return state
        
        folded = fold_annotations_to_document(
            state.inference_result.annotations,
            state.inference_result.page_texts,
            state.document_type,
        )
        
        if folded is None:
            error_msg = "Inference returned no page annotations"
            logger.warning(f"[FoldingAgent] {error_msg}")
            state.folding_error = error_msg
            state.add_reasoning(agent_name="FoldingAgent", message=error_msg)
            return state
        
        folded.document = folded.document.model_copy(
            update={
                "id": state.document_id,
                "file_path": state.file_path,
                "customer_name": state.customer_name,
                "co_code": state.co_code,
                "file_format": state.file_format,
                "status": "not_approved",
                "scanned_time": state.processing_timestamp,
            }
        )
        for item in folded.items:
            item.document_id = state.document_id
        state.folded = folded
        
        log_agent_action(
            logger,
            "FoldingAgent",
            "Annotations folded",
            {"items": len(folded.items)},
            document_id=state.document_id,
        )
        state.add_reasoning(
            agent_name="FoldingAgent",
            message=f"Folded {len(state.inference_result.annotations)} page(s) into "
                    f"{len(folded.items)} line item(s).",
            action="folding_complete",
        )
    
    except Exception as e:
        logger.exception(f"[FoldingAgent] Unexpected error: {e}")
        state.folding_error = str(e)
        state.add_reasoning(
            agent_name="FoldingAgent",
            message=f"Error during folding: {str(e)}",
        )
    
    return state
