"""
Document and line item schemas.
Represents folded extraction results with per-field page provenance.
"""

from enum import Enum
from typing import Optional, List, NewType
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime


# Transient 1-based position of an item within one operation. Never persisted.
ItemOrdinal = NewType("ItemOrdinal", int)


class DocumentType(str, Enum):
    """Supported scanned document kinds."""
    PURCHASE_ORDER = "purchase_order"
    IMPORT_DECLARATION = "import_declaration"


PO_DOCUMENT_FIELDS = [
    "po_number",
    "end_user_customer_name",
    "work_scope",
    "arc_requirement",
    "tsn",
    "csn",
]
PO_ITEM_FIELDS = [
    "part_number",
    "quantity_ordered",
    "engine_model",
    "engine_number",
    "serial_number",
]
IMPORT_DOCUMENT_FIELDS = ["import_number"]
IMPORT_ITEM_FIELDS = [
    "part_number",
    "quantity_ordered",
    "import_price",
]

# Every item field that carries a provenance page
ITEM_FIELDS = [
    "part_number",
    "quantity_ordered",
    "import_price",
    "engine_model",
    "engine_number",
    "serial_number",
]


def page_field(field_name: str) -> str:
    """Name of the provenance companion for a business field."""
    return f"t_{field_name}_page"


class DocumentItem(BaseModel):
    """A single line item belonging to a document."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)
    
    id: Optional[str] = None
    document_id: Optional[str] = None
    part_number: Optional[str] = None
    quantity_ordered: Optional[str] = None
    import_price: Optional[str] = None
    engine_model: Optional[str] = None
    engine_number: Optional[str] = None
    serial_number: Optional[str] = None
    
    t_part_number_page: Optional[int] = None
    t_quantity_ordered_page: Optional[int] = None
    t_import_price_page: Optional[int] = None
    t_engine_model_page: Optional[int] = None
    t_engine_number_page: Optional[int] = None
    t_serial_number_page: Optional[int] = None
    
    def provenance_pages(self) -> List[int]:
        """Distinct provenance pages of this item, ascending."""
        pages = {getattr(self, page_field(name)) for name in ITEM_FIELDS}
        pages.discard(None)
        return sorted(pages)


class Document(BaseModel):
    """
    One scanned file's extracted header fields.
    
    `page_texts` holds one entry per physical page. Every non-null
    `t_<field>_page`, on the document and on each of its items, must index into it.
    """
    model_config = ConfigDict(extra="ignore")
    
    id: Optional[str] = None
    document_type: Optional[DocumentType] = None
    file_path: Optional[str] = None
    status: Optional[str] = None  # approved, not_approved
    scanned_time: Optional[datetime] = None
    
    customer_name: Optional[str] = None
    co_code: Optional[str] = None
    file_format: Optional[str] = None
    
    import_number: Optional[str] = None
    po_number: Optional[str] = None
    end_user_customer_name: Optional[str] = None
    end_user_customer_number: Optional[str] = None
    work_scope: Optional[str] = None
    arc_requirement: Optional[str] = None
    receive_date: Optional[datetime] = None
    tsn: Optional[str] = None
    csn: Optional[str] = None
    
    page_texts: List[str] = Field(default_factory=list)
    
    t_import_number_page: Optional[int] = None
    t_po_number_page: Optional[int] = None
    t_end_user_customer_name_page: Optional[int] = None
    t_work_scope_page: Optional[int] = None
    t_arc_requirement_page: Optional[int] = None
    t_tsn_page: Optional[int] = None
    t_csn_page: Optional[int] = None
    
    document_items: List[DocumentItem] = Field(default_factory=list)
    
    @model_validator(mode="after")
    def check_provenance_pages(self) -> "Document":
        """Reject header or item provenance pages that do not exist in page_texts."""
        page_count = len(self.page_texts)
        for name in PO_DOCUMENT_FIELDS + IMPORT_DOCUMENT_FIELDS:
            page = getattr(self, page_field(name))
            if page is not None and not 0 <= page < page_count:
                raise ValueError(
                    f"{page_field(name)}={page} is outside page_texts (length {page_count})"
                )
        for index, item in enumerate(self.document_items):
            for page in item.provenance_pages():
                if not 0 <= page < page_count:
                    raise ValueError(
                        f"document_items[{index}] provenance page {page} is outside "
                        f"page_texts (length {page_count})"
                    )
        return self
    
    def is_purchase_order(self) -> bool:
        return self.document_type == DocumentType.PURCHASE_ORDER
    
    def is_import_declaration(self) -> bool:
        return self.document_type == DocumentType.IMPORT_DECLARATION


class FoldedDocument(BaseModel):
    """Result of folding page annotations: header record plus its line items."""
    document: Document
    items: List[DocumentItem] = Field(default_factory=list)
    
    def to_document(self) -> Document:
        """Document with its items attached."""
        return self.document.model_copy(update={"document_items": list(self.items)})


class OrdinalItem(BaseModel):
    """An item paired with its ordinal for one page-indexing pass."""
    object_id: ItemOrdinal
    item: DocumentItem


def fields_for(document_type: DocumentType) -> tuple:
    """(document fields, item fields) for a document type."""
    if document_type == DocumentType.PURCHASE_ORDER:
        return PO_DOCUMENT_FIELDS, PO_ITEM_FIELDS
    if document_type == DocumentType.IMPORT_DECLARATION:
        return IMPORT_DOCUMENT_FIELDS, IMPORT_ITEM_FIELDS
    raise ValueError(f"Unsupported document type: {document_type}")
