"""
Tests for the REST endpoints.
"""

import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from docrecon import api
from docrecon.repository import DocumentRepository, RuleRepository


@pytest.fixture
def client(po_document, import_document):
    documents = DocumentRepository([po_document, import_document])
    with patch.object(api, "get_document_repository", return_value=documents), \
            patch.object(api, "get_rule_repository", return_value=RuleRepository()):
        yield TestClient(api.app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_export(client):
    response = client.post("/export", json={"document_ids": ["po-1"]})
    
    assert response.status_code == 200
    records = response.json()
    assert len(records) == 3
    assert records[0]["IMPORT_LINE"] == "01"
    assert list(records[0].keys())[:3] == ["import_doc_num", "IMPORT_LINE", "cust_po"]


def test_score(client, po_document):
    original = po_document.model_dump(mode="json")
    verified = dict(original, po_number="PO-WRONG")
    
    response = client.post("/score", json={"original": original, "verified": verified})
    
    assert response.status_code == 200
    assert response.json()["unmatched_field_paths"] == ["document.po_number"]


def test_annotations(client):
    response = client.get("/documents/po-1/annotations")
    
    assert response.status_code == 200
    data = response.json()
    assert data["Doc_type"] == "PO"
    assert len(data["annotations"]) == 2


def test_annotations_unknown_document(client):
    assert client.get("/documents/nope/annotations").status_code == 404


def test_process_upload(client, tmp_path):
    response = client.post(
        "/process",
        files={"file": ("scan.pdf", b"%PDF-1.4", "application/pdf")},
        data={"document_type": "purchase_order", "document_id": "uploaded"},
    )
    
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["document"]["po_number"] == "PO-MOCK-001"
