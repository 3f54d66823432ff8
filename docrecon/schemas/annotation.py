"""
Page annotation schemas.

The inference service emits one annotation object per physical page, keyed
by human-readable labels ("Purchase Order Number", "Part Number", ...).
A value is present only on the page where it was first seen; every other
page carries null for it. These models map the labels onto document field
names so folding and regeneration work on named attributes.
"""

from typing import Any, ClassVar, Dict, List, Optional, Type, Union
from pydantic import BaseModel, ConfigDict, Field

from docrecon.schemas.document import DocumentType


class _AnnotationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class POItemAnnotation(_AnnotationModel):
    """Purchase order line item as seen on one page."""
    object_id: Optional[int] = None
    part_number: Optional[str] = Field(default=None, alias="Part Number")
    engine_model: Optional[str] = Field(default=None, alias="Engine Model")
    engine_number: Optional[str] = Field(default=None, alias="Engine Number")
    serial_number: Optional[str] = Field(default=None, alias="Serial Number")
    quantity_ordered: Optional[str] = Field(default=None, alias="Quantity Ordered")


class ImportItemAnnotation(_AnnotationModel):
    """Import declaration line item as seen on one page."""
    object_id: Optional[int] = None
    part_number: Optional[str] = Field(default=None, alias="Part Number")
    import_price: Optional[str] = Field(default=None, alias="Import Price")
    quantity_ordered: Optional[str] = Field(default=None, alias="Quantity Ordered")


class POPageAnnotation(_AnnotationModel):
    """Purchase order annotation for one physical page."""
    DOCUMENT_TYPE: ClassVar[DocumentType] = DocumentType.PURCHASE_ORDER
    DOC_TYPE_LABEL: ClassVar[str] = "PO"
    ITEM_MODEL: ClassVar[Type[_AnnotationModel]] = POItemAnnotation
    
    po_number: Optional[str] = Field(default=None, alias="Purchase Order Number")
    end_user_customer_name: Optional[str] = Field(default=None, alias="End User Customer Name")
    work_scope: Optional[str] = Field(default=None, alias="Work Scope")
    arc_requirement: Optional[str] = Field(default=None, alias="ARC Requirement")
    tsn: Optional[str] = Field(default=None, alias="TSN Number")
    csn: Optional[str] = Field(default=None, alias="CSN Number")
    items: List[POItemAnnotation] = Field(default_factory=list, alias="Item")


class ImportPageAnnotation(_AnnotationModel):
    """Import declaration annotation for one physical page."""
    DOCUMENT_TYPE: ClassVar[DocumentType] = DocumentType.IMPORT_DECLARATION
    DOC_TYPE_LABEL: ClassVar[str] = "Import"
    ITEM_MODEL: ClassVar[Type[_AnnotationModel]] = ImportItemAnnotation
    
    import_number: Optional[str] = Field(default=None, alias="Import Document Number")
    items: List[ImportItemAnnotation] = Field(default_factory=list, alias="Item")


PageAnnotation = Union[POPageAnnotation, ImportPageAnnotation]

ANNOTATION_MODELS: Dict[DocumentType, Type[_AnnotationModel]] = {
    DocumentType.PURCHASE_ORDER: POPageAnnotation,
    DocumentType.IMPORT_DECLARATION: ImportPageAnnotation,
}

DOC_TYPE_LABELS: Dict[str, DocumentType] = {
    "PO": DocumentType.PURCHASE_ORDER,
    "Import": DocumentType.IMPORT_DECLARATION,
}


def annotation_model_for(document_type: Union[DocumentType, str]) -> Type[_AnnotationModel]:
    """Annotation model for a document type or its short label ("PO", "Import")."""
    if isinstance(document_type, str) and document_type in DOC_TYPE_LABELS:
        document_type = DOC_TYPE_LABELS[document_type]
    try:
        return ANNOTATION_MODELS[DocumentType(document_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Unsupported document type: {document_type}")


def parse_page_annotations(
    raw_annotations: List[Union[Dict[str, Any], PageAnnotation]],
    document_type: Union[DocumentType, str],
) -> List[PageAnnotation]:
    """Validate label-keyed annotation dicts into typed page annotations."""
    model = annotation_model_for(document_type)
    parsed = []
    for raw in raw_annotations:
        if isinstance(raw, model):
            parsed.append(raw)
        elif isinstance(raw, BaseModel):
            parsed.append(model.model_validate(raw.model_dump(by_alias=True)))
        else:
            parsed.append(model.model_validate(raw))
    return parsed


class TrainingData(BaseModel):
    """Page-by-page annotation view of one document, as used for training."""
    model_config = ConfigDict(populate_by_name=True)
    
    doc_type: str = Field(alias="Doc_type")
    content: List[str] = Field(default_factory=list)
    annotations: List[PageAnnotation] = Field(default_factory=list)
    
    def to_json_dict(self) -> Dict[str, Any]:
        """Label-keyed dictionary in the inference service's format."""
        return {
            "Doc_type": self.doc_type,
            "content": list(self.content),
            "annotations": [a.model_dump(by_alias=True) for a in self.annotations],
        }


class InferenceResult(BaseModel):
    """Validated output of one inference call: page texts plus page annotations."""
    document_type: DocumentType
    page_texts: List[str] = Field(default_factory=list)
    annotations: List[PageAnnotation] = Field(default_factory=list)
