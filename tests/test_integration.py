"""
Integration tests for ingestion, export and verification.
"""

import pytest
from unittest.mock import AsyncMock, patch

from docrecon.agents.inference import InferenceServiceError
from docrecon.main import export_csv_file, export_csv_records, ingest_document, verify_documents
from docrecon.repository import DocumentRepository, RuleRepository
from docrecon.schemas.document import Document, DocumentType
from docrecon.schemas.rules import EngineModelRule, RuleSet, WorkScopeRule


@pytest.mark.asyncio
async def test_ingest_po_in_mock_mode():
    documents = DocumentRepository()
    
    output = await ingest_document(
        DocumentType.PURCHASE_ORDER,
        raw_text="raw",
        document_id="po-new",
        customer_name="Acme",
        documents=documents,
    )
    
    assert output.success is True
    assert output.error is None
    assert output.item_count == 1
    assert output.document.po_number == "PO-MOCK-001"
    assert output.document.t_po_number_page == 0
    
    stored = documents.get("po-new")
    assert stored.status == "not_approved"
    assert stored.customer_name == "Acme"
    assert [item.document_id for item in stored.document_items] == ["po-new"]


@pytest.mark.asyncio
async def test_ingest_strips_engine_model_titles():
    mock_response = {
        "Doc_type": "PO",
        "content": ["p0"],
        "annotations": [
            {"Purchase Order Number": "PO-1", "Item": [{"object_id": 1, "Part Number": "A", "Engine Model": "ESM: CFM56"}]}
        ],
    }
    documents = DocumentRepository()
    rules = RuleRepository(RuleSet(engine_model_rules=[EngineModelRule(engine_model_title="ESM")]))
    
    with patch("docrecon.agents.inference.mock_inference_response", return_value=mock_response):
        output = await ingest_document("purchase_order", raw_text="raw", document_id="d1",
                                       documents=documents, rules=rules)
    
    assert output.success is True
    assert documents.get_items("d1")[0].engine_model == "CFM56"


@pytest.mark.asyncio
async def test_ingest_stops_on_inference_error():
    documents = DocumentRepository()
    
    with patch(
        "docrecon.agents.inference.infer",
        new=AsyncMock(side_effect=InferenceServiceError(500, "down")),
    ):
        output = await ingest_document("purchase_order", raw_text="raw", document_id="d2", documents=documents)
    
    assert output.success is False
    assert "500" in output.error
    assert output.document is None
    assert documents.get("d2") is None
    assert "[InferenceAgent]" in output.agent_reasoning


@pytest.mark.asyncio
async def test_ingest_empty_annotations_is_a_folding_error():
    documents = DocumentRepository()
    empty = {"Doc_type": "PO", "content": [], "annotations": []}
    
    with patch("docrecon.agents.inference.mock_inference_response", return_value=empty):
        output = await ingest_document("purchase_order", raw_text="raw", document_id="d3", documents=documents)
    
    assert output.success is False
    assert output.error == "Inference returned no page annotations"
    assert len(documents) == 0


def test_export_resolves_imports_and_applies_rules(po_document, import_document):
    documents = DocumentRepository([po_document, import_document])
    rules = RuleRepository(RuleSet(work_scope_rules=[WorkScopeRule(overhaul_keywords="OVERHAUL", result_display="OH")]))
    
    records = export_csv_records(["po-1", "imp-1", "missing"], documents, rules)
    
    assert len(records) == 3
    assert [r.IMPORT_LINE for r in records] == ["01", "02", None]
    assert all(r.WORK_SCOPE == "OH" for r in records)
    assert records[0].CUST_NAME == "Mock Airline Ltd"


@pytest.mark.asyncio
async def test_verify_documents_scores_and_isolates_failures(po_document):
    broken = po_document.model_copy(update={"id": "po-broken"})
    changed = po_document.model_copy(update={"work_scope": "REPAIR"})
    
    async def reinfer(document):
        if document.id == "po-broken":
            raise InferenceServiceError(502, "bad gateway")
        if document.id == "po-1":
            return changed
        return None
    
    summary = await verify_documents([po_document, broken], reinfer)
    
    assert summary.succeeded == 1
    assert summary.failed == 1
    ok, failed = summary.results
    assert ok.accuracy.unmatched_field_paths == ["document.work_scope"]
    assert ok.accuracy.accuracy < 100.0
    assert summary.mean_accuracy == ok.accuracy.accuracy
    assert failed.success is False
    assert "502" in failed.message


def test_export_csv_file(tmp_path, po_document, import_document):
    documents = DocumentRepository([po_document, import_document])
    path = export_csv_file(["po-1"], documents, path=tmp_path / "po.csv")
    
    lines = path.read_text().splitlines()
    assert lines[0].startswith("import_doc_num,IMPORT_LINE,cust_po")
    assert len(lines) == 4
