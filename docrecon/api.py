"""
Optional FastAPI REST endpoint for the reconciliation engine.
Can be run with: uvicorn docrecon.api:app --reload
"""

import tempfile
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docrecon import __version__
from docrecon.agents.accuracy import score_accuracy
from docrecon.agents.page_index import build_training_data
from docrecon.main import (
    export_csv_records,
    ingest_document,
    load_document_repository,
    load_rule_repository,
)
from docrecon.repository import DocumentRepository, RuleRepository
from docrecon.schemas.document import Document, DocumentType
from docrecon.utils.logging import setup_logging
from docrecon.config import get_config

app = FastAPI(
    title="Document Reconciliation API",
    description="PO / import declaration reconciliation and field provenance",
    version=__version__,
)

logger = setup_logging(__name__)
config = get_config()

_documents: Optional[DocumentRepository] = None
_rules: Optional[RuleRepository] = None


def get_document_repository() -> DocumentRepository:
    global _documents
    if _documents is None:
        _documents = load_document_repository()
    return _documents


def get_rule_repository() -> RuleRepository:
    global _rules
    if _rules is None:
        _rules = load_rule_repository()
    return _rules


class ExportRequest(BaseModel):
    document_ids: List[str] = Field(default_factory=list)


class ScoreRequest(BaseModel):
    original: Document
    verified: Document


@app.post("/process")
async def process_document_endpoint(
    file: UploadFile = File(...),
    document_type: DocumentType = Form(...),
    document_id: str = Form(None),
    prompt: str = Form(""),
):
    """
    Run a document through inference and store the folded result.
    
    Args:
        file: Scanned PDF
        document_type: purchase_order or import_declaration
        document_id: Optional document ID
        prompt: Optional customer-specific prompt
    """
    try:
        with tempfile.NamedTemporaryFile(delete=False, suffix=Path(file.filename).suffix) as tmp:
            contents = await file.read()
            tmp.write(contents)
            tmp_path = tmp.name
        
        try:
            output = await ingest_document(
                document_type,
                source_path=tmp_path,
                document_id=document_id,
                prompt=prompt,
                documents=get_document_repository(),
                rules=get_rule_repository(),
            )
            return JSONResponse(
                content=output.model_dump(mode="json"),
                status_code=200 if output.success else 422,
            )
        
        finally:
            Path(tmp_path).unlink(missing_ok=True)
    
    except Exception as e:
        logger.exception(f"Failed to process document: {e}")
        return JSONResponse(
            content={
                "error": str(e),
                "message": "Failed to process document",
            },
            status_code=500,
        )


@app.post("/export")
async def export_endpoint(request: ExportRequest):
    """CSV records for the selected PO documents, in export column order."""
    records = export_csv_records(
        request.document_ids,
        get_document_repository(),
        get_rule_repository(),
    )
    return [record.model_dump() for record in records]


@app.post("/score")
async def score_endpoint(request: ScoreRequest):
    """Score a verified document against the original."""
    return score_accuracy(request.original, request.verified).model_dump()


@app.get("/documents/{document_id}/annotations")
async def annotations_endpoint(document_id: str):
    """Training data regenerated from a stored document."""
    document = get_document_repository().get(document_id)
    if document is None:
        return JSONResponse(
            content={"error": f"Document {document_id} not found"},
            status_code=404,
        )
    return build_training_data(document).to_json_dict()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/config")
async def get_config_endpoint():
    """Get current configuration (sanitized)."""
    return {
        "ai_service_url": config.AI_SERVICE_URL,
        "ai_service_timeout": config.AI_SERVICE_TIMEOUT,
        "mock_mode": config.LLM_MOCK_MODE,
    }


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        app,
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
