"""
Page indexing for line items.

The inverse of folding: buckets items by the pages their fields were read
from and regenerates the page-by-page annotation view used for training.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from docrecon.schemas.annotation import (
    PageAnnotation,
    TrainingData,
    annotation_model_for,
)
from docrecon.schemas.document import (
    Document,
    DocumentItem,
    DocumentType,
    ItemOrdinal,
    OrdinalItem,
    fields_for,
    page_field,
)
from docrecon.utils.logging import setup_logging
from docrecon.config import get_config


logger = setup_logging(__name__)
config = get_config()


def index_items_by_page(items: Sequence[DocumentItem]) -> Dict[int, List[OrdinalItem]]:
    """
    Map page index -> items with any provenance field on that page.
    
    Each item is assigned object_id = its 1-based position in `items` for
    this call only. An item whose fields span several pages appears once in
    each of those pages' buckets.
    """
    page_items: Dict[int, List[OrdinalItem]] = {}
    
    for position, item in enumerate(items, 1):
        ordinal = OrdinalItem(object_id=ItemOrdinal(position), item=item)
        for page in item.provenance_pages():
            page_items.setdefault(page, []).append(ordinal)
    
    return page_items


def create_annotations_for_document(
    document: Document,
    items: Optional[Sequence[DocumentItem]] = None,
) -> List[PageAnnotation]:
    """
    Regenerate one annotation per physical page of a document.
    
    A field is non-null only on its provenance page. Pages without items get
    a single all-null placeholder item so every page has at least one entry.
    """
    if document is None:
        return []
    if items is None:
        items = document.document_items
    
    model = annotation_model_for(document.document_type)
    item_model = model.ITEM_MODEL
    document_fields, item_fields = fields_for(model.DOCUMENT_TYPE)
    page_items = index_items_by_page(items)
    
    annotations: List[PageAnnotation] = []
    for page in range(len(document.page_texts)):
        header = {
            name: getattr(document, name) if getattr(document, page_field(name)) == page else None
            for name in document_fields
        }
        
        bucket = page_items.get(page)
        if not bucket:
            annotation_items = [item_model()]
        else:
            annotation_items = [
                item_model(
                    object_id=entry.object_id,
                    **{
                        name: getattr(entry.item, name)
                        if getattr(entry.item, page_field(name)) == page
                        else None
                        for name in item_fields
                    },
                )
                for entry in bucket
            ]
        
        annotations.append(model(items=annotation_items, **header))
    
    return annotations


def build_training_data(
    document: Document,
    items: Optional[Sequence[DocumentItem]] = None,
) -> TrainingData:
    """Training record for one document: page texts plus regenerated annotations."""
    model = annotation_model_for(document.document_type)
    return TrainingData(
        doc_type=model.DOC_TYPE_LABEL,
        content=list(document.page_texts),
        annotations=create_annotations_for_document(document, items),
    )


def write_training_files(
    documents: Iterable[Document],
    dataset_name: str,
    base_dir: Optional[Union[str, Path]] = None,
) -> List[Path]:
    """
    Write one `<PO|Import>_<id>.json` training file per document.
    
    Documents with an unknown document type are skipped.
    
    Returns:
        Paths of the files written
    """
    dataset_dir = Path(base_dir or config.TRAINING_DATA_DIR) / dataset_name
    dataset_dir.mkdir(parents=True, exist_ok=True)
    
    written = []
    for document in documents:
        if document.document_type not in (DocumentType.PURCHASE_ORDER, DocumentType.IMPORT_DECLARATION):
            logger.warning(f"Skipping document {document.id} with unknown type {document.document_type}")
            continue
        
        training_data = build_training_data(document)
        file_path = dataset_dir / f"{training_data.doc_type}_{document.id}.json"
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(training_data.to_json_dict(), f, indent=2, ensure_ascii=False)
        written.append(file_path)
    
    logger.info(f"Wrote {len(written)} training file(s) to {dataset_dir}")
    return written
