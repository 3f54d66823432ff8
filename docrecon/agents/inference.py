"""
Inference Agent
Calls the external AI inference service and validates its page annotations.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx
from langchain_core.prompts import PromptTemplate

from docrecon.state import IngestionState
from docrecon.schemas.annotation import (
    InferenceResult,
    annotation_model_for,
    parse_page_annotations,
)
from docrecon.schemas.document import DocumentType
from docrecon.utils.logging import setup_logging, log_agent_action
from docrecon.config import get_config


logger = setup_logging(__name__)
config = get_config()


class InferenceServiceError(Exception):
    """Raised when the inference service fails or answers with a non-success status."""
    
    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(
            f"AI inference API request failed with status {status_code}: {message}"
            if status_code is not None
            else f"AI inference API request failed: {message}"
        )
        self.status_code = status_code
        self.message = message


DEFAULT_PROMPT_TEMPLATE = """Extract the {doc_type_label} document fields page by page.
Fields: {field_labels}
Item fields: {item_labels}
Report each value only on the page where it first appears."""


def build_inference_prompt(document_type: Union[DocumentType, str], customer_prompt: str = "") -> str:
    """
    Prompt sent along with a document.
    
    A customer-specific prompt is passed through untouched; otherwise a
    default prompt listing the expected labels is rendered.
    """
    if customer_prompt and customer_prompt.strip():
        return customer_prompt
    
    model = annotation_model_for(document_type)
    field_labels = [
        field.alias for name, field in model.model_fields.items() if name != "items"
    ]
    item_labels = [
        field.alias for name, field in model.ITEM_MODEL.model_fields.items() if field.alias
    ]
    prompt = PromptTemplate(
        input_variables=["doc_type_label", "field_labels", "item_labels"],
        template=DEFAULT_PROMPT_TEMPLATE,
    )
    return prompt.format(
        doc_type_label=model.DOC_TYPE_LABEL,
        field_labels=", ".join(field_labels),
        item_labels=", ".join(item_labels),
    )


def mock_inference_response(document_type: Union[DocumentType, str]) -> Dict[str, Any]:
    """Canned single-page response used when LLM_MOCK_MODE is enabled."""
    model = annotation_model_for(document_type)
    if model.DOCUMENT_TYPE == DocumentType.PURCHASE_ORDER:
        annotation = {
            "Purchase Order Number": "PO-MOCK-001",
            "End User Customer Name": "Mock Airline",
            "Work Scope": "OVERHAUL",
            "ARC Requirement": "EASA FORM 1",
            "TSN Number": "12000",
            "CSN Number": "8000",
            "Item": [
                {
                    "object_id": 1,
                    "Part Number": "A100",
                    "Engine Model": "CFM56-7B",
                    "Engine Number": "ESN-001",
                    "Serial Number": "SN-001",
                    "Quantity Ordered": "5 EA",
                }
            ],
        }
    else:
        annotation = {
            "Import Document Number": "12/3456789",
            "Item": [
                {
                    "object_id": 1,
                    "Part Number": "A100",
                    "Import Price": "150.00",
                    "Quantity Ordered": "5",
                }
            ],
        }
    return {
        "Doc_type": model.DOC_TYPE_LABEL,
        "content": ["Mock page text"],
        "annotations": [annotation],
    }


def parse_inference_response(
    data: Dict[str, Any],
    document_type: Union[DocumentType, str],
) -> InferenceResult:
    """
    Validate an inference response into typed annotations.
    
    This is the one place label-keyed dictionaries are checked; folding only
    ever sees typed annotations.
    
    Raises:
        InferenceServiceError: When annotations and page texts are not one
            per physical page.
    """
    model = annotation_model_for(document_type)
    raw_annotations = data.get("annotations") or []
    page_texts = data.get("content")
    if page_texts is None:
        page_texts = data.get("page_texts") or []
    
    if len(page_texts) != len(raw_annotations):
        raise InferenceServiceError(
            None,
            f"Response has {len(raw_annotations)} page annotation(s) but {len(page_texts)} page text(s)",
        )
    
    return InferenceResult(
        document_type=model.DOCUMENT_TYPE,
        page_texts=[str(text) for text in page_texts],
        annotations=parse_page_annotations(raw_annotations, model.DOCUMENT_TYPE),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or data)
    return str(data)


async def infer(
    source: Union[str, Path],
    document_type: Union[DocumentType, str],
    prompt: str = "",
    raw: bool = False,
) -> InferenceResult:
    """
    Run the external inference service on a PDF file or raw page text.
    
    Args:
        source: Path to the PDF, or the raw text when raw=True
        document_type: Document type or its short label
        prompt: Prompt forwarded to the service (a single space when empty)
        raw: Send source as text instead of uploading a file
    
    Returns:
        InferenceResult with one annotation per physical page
    
    Raises:
        InferenceServiceError: On transport failure or non-success status.
            Not retried.
    """
    model = annotation_model_for(document_type)
    
    if config.LLM_MOCK_MODE:
        logger.info("Mock mode enabled - returning sample inference response")
        return parse_inference_response(mock_inference_response(model.DOCUMENT_TYPE), model.DOCUMENT_TYPE)
    
    url = f"{config.AI_SERVICE_URL.rstrip('/')}/api/inference"
    form = {
        "doc_type": model.DOC_TYPE_LABEL,
        "prompt": prompt if prompt else " ",
    }
    
    logger.debug(f"Calling inference service: {url} (doc_type={model.DOC_TYPE_LABEL}, raw={raw})")
    
    try:
        async with httpx.AsyncClient(timeout=config.AI_SERVICE_TIMEOUT) as client:
            if raw:
                form["raw"] = str(source)
                response = await client.post(url, data=form)
            else:
                path = Path(source)
                with open(path, "rb") as fh:
                    files = {"pdf": (path.name, fh, "application/pdf")}
                    response = await client.post(url, data=form, files=files)
    except httpx.HTTPError as e:
        logger.error(f"Inference service call failed: {e}")
        raise InferenceServiceError(None, str(e)) from e
    
    if not response.is_success:
        message = _error_message(response)
        logger.error(f"Inference service returned {response.status_code}: {message}")
        raise InferenceServiceError(response.status_code, message)
    
    try:
        data = response.json()
    except ValueError as e:
        raise InferenceServiceError(response.status_code, f"Invalid JSON response: {e}") from e
    
    if not isinstance(data, dict):
        raise InferenceServiceError(response.status_code, "Unexpected response shape")
    
    return parse_inference_response(data, model.DOCUMENT_TYPE)


async def inference_agent(state: IngestionState) -> IngestionState:
    """
    Inference Agent node.
    
    Updates state:
    - inference_result
    - inference_error / inference_status_code (if applicable)
    
    Adds reasoning log entry.
    """
    logger.info(f"[InferenceAgent] Processing document: {state.document_id}")
    
    try:
        if state.raw_text is not None:
            source, raw = state.raw_text, True
        elif state.source_path:
            source, raw = state.source_path, False
        else:
            error_msg = "No source file or raw text provided for inference"
            logger.error(f"[InferenceAgent] {error_msg}")
            state.inference_error = error_msg
            state.add_reasoning(agent_name="InferenceAgent", message=error_msg)
            return state
        
        prompt = build_inference_prompt(state.document_type, state.prompt)
        result = await infer(source, state.document_type, prompt, raw=raw)
        state.inference_result = result
        
        log_agent_action(
            logger,
            "InferenceAgent",
            "Inference complete",
            {"pages": len(result.annotations)},
            document_id=state.document_id,
        )
        state.add_reasoning(
            agent_name="InferenceAgent",
            message=f"Received {len(result.annotations)} page annotation(s) "
                    f"for {len(result.page_texts)} page(s).",
            action="inference_complete",
        )
    
    except InferenceServiceError as e:
        logger.error(f"[InferenceAgent] {e}")
        state.inference_error = str(e)
        state.inference_status_code = e.status_code
        state.add_reasoning(
            agent_name="InferenceAgent",
            message=f"Inference failed: {e}",
        )
    except Exception as e:
        logger.exception(f"[InferenceAgent] Unexpected error: {e}")
        state.inference_error = str(e)
        state.add_reasoning(
            agent_name="InferenceAgent",
            message=f"Unexpected error during inference: {str(e)}",
        )
    
    return state
