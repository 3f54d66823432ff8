"""
Main entry point for the document reconciliation engine.
"""

import asyncio
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from docrecon.state import IngestionState
from docrecon.graph import build_ingestion_graph
from docrecon.repository import DocumentRepository, RuleRepository
from docrecon.schemas.csv_record import CsvRecord
from docrecon.schemas.document import Document, DocumentType
from docrecon.schemas.output import IngestionOutput, VerificationResult, VerificationSummary
from docrecon.agents.accuracy import score_accuracy, summarize_verification
from docrecon.agents.folding import fold_annotations_to_document
from docrecon.agents.inference import build_inference_prompt, infer
from docrecon.agents.matching import match_line_items, write_csv
from docrecon.agents.page_index import write_training_files
from docrecon.utils.logging import setup_logging, log_unmatched_fields
from docrecon.utils import dict_to_json_string
from docrecon.config import get_config


logger = setup_logging(__name__)
config = get_config()


Reinfer = Callable[[Document], Awaitable[Optional[Document]]]


def load_document_repository(path: Optional[str] = None) -> DocumentRepository:
    return DocumentRepository.load_from_file(path or config.DOCUMENT_STORE_PATH)


def load_rule_repository(path: Optional[str] = None) -> RuleRepository:
    return RuleRepository.load_from_file(path or config.RULE_STORE_PATH)


def build_output(state: IngestionState) -> IngestionOutput:
    """Build final output from state."""
    error = state.first_error()
    document = state.folded.to_document() if state.folded else None
    
    return IngestionOutput(
        document_id=state.document_id,
        processing_timestamp=state.processing_timestamp,
        success=error is None and state.persisted,
        document=document,
        item_count=len(document.document_items) if document else 0,
        error=error,
        agent_reasoning=state.get_agent_reasoning(),
    )


async def ingest_document(
    document_type: Union[DocumentType, str],
    source_path: Optional[str] = None,
    raw_text: Optional[str] = None,
    document_id: Optional[str] = None,
    prompt: str = "",
    customer_name: Optional[str] = None,
    co_code: Optional[str] = None,
    documents: Optional[DocumentRepository] = None,
    rules: Optional[RuleRepository] = None,
) -> IngestionOutput:
    """
    Run one document through inference, folding, item rules and storage.
    
    Args:
        document_type: purchase_order or import_declaration
        source_path: PDF to upload to the inference service
        raw_text: Page text to send instead of a file
        document_id: Optional document ID (auto-generated if not provided)
        prompt: Customer-specific prompt; the configured default otherwise
        customer_name: Customer the document belongs to
        co_code: Customer company code
        documents: Store the folded document is written to
        rules: Rule tables; engine model titles are stripped from items
    
    Returns:
        IngestionOutput with the stored document or the first error
    """
    if not document_id:
        document_id = str(uuid.uuid4())
    
    if documents is None:
        documents = load_document_repository()
    
    state = IngestionState(
        document_id=document_id,
        processing_timestamp=datetime.now(timezone.utc),
        document_type=DocumentType(document_type),
        source_path=source_path,
        raw_text=raw_text,
        prompt=prompt or config.DEFAULT_PROMPT,
        file_path=source_path,
        customer_name=customer_name,
        co_code=co_code,
        file_format=Path(source_path).suffix.lstrip(".").lower() if source_path else None,
    )
    
    logger.info(f"Starting ingestion for {document_id} ({state.document_type.value})")
    
    graph = build_ingestion_graph(documents, rules)
    
    try:
        result = await graph.ainvoke(state, config={"recursion_limit": config.GRAPH_RECURSION_LIMIT})
        final_state = IngestionState(**result) if isinstance(result, dict) else result
    except Exception as e:
        logger.error(f"Error running ingestion graph: {e}")
        state.add_reasoning(agent_name="Workflow", message=f"Graph failed: {e}")
        state.persistence_error = state.persistence_error or str(e)
        final_state = state
    
    output = build_output(final_state)
    
    if output.success:
        logger.info(f"Ingestion complete for {document_id}: {output.item_count} item(s)")
    else:
        logger.warning(f"Ingestion failed for {document_id}: {output.error}")
    
    return output


def export_csv_records(
    document_ids: Sequence[str],
    documents: DocumentRepository,
    rules: Optional[RuleRepository] = None,
) -> List[CsvRecord]:
    """
    Export records for the selected PO documents.
    
    Import declarations are resolved through each PO's import_number. The
    whole selection shares one consumption state, so it is processed as a
    single sequential batch.
    """
    selected = documents.get_many(document_ids)
    po_documents = [document for document in selected if document.is_purchase_order()]
    
    skipped = len(selected) - len(po_documents)
    if skipped:
        logger.info(f"Skipping {skipped} non-PO document(s) in export selection")
    
    import_doc_by_number = documents.find_import_documents(
        document.import_number for document in po_documents
    )
    rule_set = rules.get_rule_set() if rules else None
    
    return match_line_items(po_documents, import_doc_by_number, rule_set)


def export_csv_file(
    document_ids: Sequence[str],
    documents: DocumentRepository,
    rules: Optional[RuleRepository] = None,
    path: Optional[Union[str, Path]] = None,
) -> Path:
    """Export the selection to a CSV file, by default under CSV_EXPORT_DIR."""
    if path is None:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        path = Path(config.CSV_EXPORT_DIR) / f"export_{timestamp}.csv"
    return write_csv(export_csv_records(document_ids, documents, rules), path)


async def reinfer_document(document: Document) -> Optional[Document]:
    """Re-run inference on a stored document's file and fold the result."""
    if not document.file_path:
        raise ValueError(f"Document {document.id} has no file to re-infer")
    
    result = await infer(
        document.file_path,
        document.document_type,
        build_inference_prompt(document.document_type, config.DEFAULT_PROMPT),
    )
    folded = fold_annotations_to_document(result.annotations, result.page_texts, result.document_type)
    return folded.to_document() if folded else None


async def verify_documents(
    originals: Sequence[Document],
    reinfer: Optional[Reinfer] = None,
) -> VerificationSummary:
    """
    Re-infer each verified document and score it against the original.
    
    Documents are re-inferred concurrently. A document that fails is
    reported as a failed result and does not stop the rest of the batch.
    """
    reinfer = reinfer or reinfer_document
    
    async def verify_one(original: Document) -> VerificationResult:
        try:
            verified = await reinfer(original)
        except Exception as e:
            logger.error(f"Verification failed for document {original.id}: {e}")
            return VerificationResult(document_id=original.id, success=False, message=str(e))
        
        if verified is None:
            return VerificationResult(
                document_id=original.id,
                success=False,
                message="Inference returned no page annotations",
            )
        
        accuracy = score_accuracy(original, verified)
        if accuracy.unmatched_field_paths:
            log_unmatched_fields(logger, original.id, accuracy.accuracy, accuracy.unmatched_field_paths)
        return VerificationResult(document_id=original.id, success=True, accuracy=accuracy)
    
    results = await asyncio.gather(*(verify_one(original) for original in originals))
    return summarize_verification(results)


def generate_training_data(
    document_ids: Sequence[str],
    documents: DocumentRepository,
    dataset_name: str,
    base_dir: Optional[str] = None,
) -> List[Path]:
    """Write training files for the selected documents."""
    return write_training_files(documents.get_many(document_ids), dataset_name, base_dir)


def format_output_json(output: IngestionOutput) -> str:
    """Format output as JSON string."""
    return dict_to_json_string(output.model_dump(mode="json"))


USAGE = """Usage:
  python -m docrecon.main ingest <po|import> <document_path> [document_id]
  python -m docrecon.main export <store.json> <out.csv> [document_id ...]
  python -m docrecon.main training <store.json> <dataset_name> [document_id ...]"""


if __name__ == "__main__":
    args = sys.argv[1:]
    
    if len(args) >= 3 and args[0] == "ingest":
        document_type = (
            DocumentType.PURCHASE_ORDER if args[1].lower() == "po" else DocumentType.IMPORT_DECLARATION
        )
        store = load_document_repository()
        output = asyncio.run(
            ingest_document(
                document_type,
                source_path=args[2],
                document_id=args[3] if len(args) > 3 else None,
                documents=store,
                rules=load_rule_repository(),
            )
        )
        if output.success:
            store.save_to_file(config.DOCUMENT_STORE_PATH)
        print(format_output_json(output))
    elif len(args) >= 3 and args[0] == "export":
        store = load_document_repository(args[1])
        ids = args[3:] or [document.id for document in store.all()]
        path = export_csv_file(ids, store, load_rule_repository(), args[2])
        print(f"Exported to {path}")
    elif len(args) >= 3 and args[0] == "training":
        store = load_document_repository(args[1])
        ids = args[3:] or [document.id for document in store.all()]
        paths = generate_training_data(ids, store, args[2])
        print(f"Wrote {len(paths)} training file(s)")
    else:
        print(USAGE)
