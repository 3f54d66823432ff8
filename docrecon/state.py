"""
Shared state object for the document ingestion workflow.
All graph nodes read/write from this state to coordinate their work.
"""

from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from docrecon.schemas.annotation import InferenceResult
from docrecon.schemas.document import DocumentType, FoldedDocument


class ReasoningLogEntry(BaseModel):
    """A single entry in the agent reasoning log."""
    timestamp: datetime
    agent_name: str
    message: str
    action: Optional[str] = None


class IngestionState(BaseModel):
    """
    Shared mutable state object for the ingestion workflow.
    
    This state is passed between nodes. Each node:
    1. Reads relevant state
    2. Performs its task
    3. Updates state with results
    4. Adds reasoning log entry
    5. Passes state to next node
    """
    
    # Workflow identification
    document_id: str
    processing_timestamp: datetime
    document_type: DocumentType
    
    # Inference input: a file path, or raw page text when raw_text is set
    source_path: Optional[str] = None
    raw_text: Optional[str] = None
    prompt: str = ""
    
    # Header fields known before inference (customer, storage path)
    file_path: Optional[str] = None
    customer_name: Optional[str] = None
    co_code: Optional[str] = None
    file_format: Optional[str] = None
    
    # Inference phase
    inference_result: Optional[InferenceResult] = None
    inference_error: Optional[str] = None
    inference_status_code: Optional[int] = None
    
    # Folding phase
    folded: Optional[FoldedDocument] = None
    folding_error: Optional[str] = None
    
    # Rule phase
    rules_applied: int = 0
    rules_error: Optional[str] = None
    
    # Persistence phase
    persisted: bool = False
    persistence_error: Optional[str] = None
    
    # Reasoning and audit trail
    reasoning_log: List[ReasoningLogEntry] = Field(default_factory=list)
    
    def add_reasoning(
        self,
        agent_name: str,
        message: str,
        action: Optional[str] = None
    ) -> None:
        """Add an entry to the agent reasoning log."""
        self.reasoning_log.append(
            ReasoningLogEntry(
                timestamp=datetime.now(timezone.utc),
                agent_name=agent_name,
                message=message,
                action=action,
            )
        )
    
    def first_error(self) -> Optional[str]:
        """The earliest error recorded by any phase, if any."""
        for error in (
            self.inference_error,
            self.folding_error,
            self.rules_error,
            self.persistence_error,
        ):
            if error:
                return error
        return None
    
    def get_agent_reasoning(self) -> str:
        """Get a human-readable summary of the agent reasoning."""
        if not self.reasoning_log:
            return "No reasoning available."
        
        return "\n".join(
            f"[{entry.agent_name}] {entry.message}" for entry in self.reasoning_log
        )
