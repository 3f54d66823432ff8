"""
Tests for page indexing and training data regeneration.
"""

import json

import pytest

from docrecon.agents.page_index import (
    build_training_data,
    create_annotations_for_document,
    index_items_by_page,
    write_training_files,
)
from docrecon.schemas.annotation import POItemAnnotation
from docrecon.schemas.document import Document, DocumentItem, DocumentType


def test_index_assigns_ordinals_and_spans_pages(po_document):
    page_items = index_items_by_page(po_document.document_items)
    
    assert sorted(page_items) == [0, 1]
    assert [entry.object_id for entry in page_items[0]] == [1, 2]
    assert [entry.object_id for entry in page_items[1]] == [2, 3]
    assert page_items[1][0].item.part_number == "B200"


def test_item_without_provenance_is_not_indexed():
    page_items = index_items_by_page([DocumentItem(part_number="X")])
    assert page_items == {}


def test_annotations_one_per_page(po_document):
    annotations = create_annotations_for_document(po_document)
    
    assert len(annotations) == 2
    assert annotations[0].po_number == "PO-1001"
    assert annotations[1].po_number is None
    assert annotations[1].work_scope == "FULL OVERHAUL"


def test_item_fields_only_on_their_page(po_document):
    annotations = create_annotations_for_document(po_document)
    
    b200_page0 = annotations[0].items[1]
    b200_page1 = annotations[1].items[0]
    assert b200_page0.object_id == b200_page1.object_id == 2
    assert b200_page0.part_number == "B200"
    assert b200_page0.quantity_ordered is None
    assert b200_page1.part_number is None
    assert b200_page1.quantity_ordered == "2"


def test_empty_page_gets_placeholder_item():
    document = Document(
        id="po-2",
        document_type=DocumentType.PURCHASE_ORDER,
        po_number="PO-2",
        page_texts=["a", "b"],
        t_po_number_page=0,
        document_items=[DocumentItem(part_number="A100", t_part_number_page=0)],
    )
    annotations = create_annotations_for_document(document)
    
    assert annotations[1].items == [POItemAnnotation()]


def test_create_annotations_for_none_document():
    assert create_annotations_for_document(None) == []


def test_training_data_uses_service_labels(po_document):
    data = build_training_data(po_document).to_json_dict()
    
    assert data["Doc_type"] == "PO"
    assert data["content"] == ["page one", "page two"]
    assert data["annotations"][0]["Purchase Order Number"] == "PO-1001"
    assert data["annotations"][0]["Item"][0]["Part Number"] == "A100"


def test_write_training_files(tmp_path, po_document, import_document):
    paths = write_training_files([po_document, import_document], "batch1", base_dir=tmp_path)
    
    assert [path.name for path in paths] == ["PO_po-1.json", "Import_imp-1.json"]
    content = json.loads(paths[1].read_text(encoding="utf-8"))
    assert content["Doc_type"] == "Import"
    assert content["annotations"][0]["Import Document Number"] == "12/3456789"


def test_write_training_files_skips_untyped_documents(tmp_path):
    paths = write_training_files([Document(id="x", page_texts=["a"])], "batch2", base_dir=tmp_path)
    assert paths == []
