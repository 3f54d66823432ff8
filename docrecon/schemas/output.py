"""
Output schemas for scoring, verification and ingestion results.
"""

from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from docrecon.schemas.document import Document


class AccuracyResult(BaseModel):
    """Field-by-field comparison of a verified document against the original."""
    accuracy: float = Field(ge=0.0, le=100.0)
    unmatched_field_paths: List[str] = Field(default_factory=list)
    total_field_count: int = 0
    matched_field_count: int = 0


class VerificationResult(BaseModel):
    """Outcome of re-inferring and scoring one document."""
    document_id: Optional[str] = None
    success: bool
    accuracy: Optional[AccuracyResult] = None
    message: Optional[str] = None


class VerificationSummary(BaseModel):
    """Aggregate over a batch of verification results."""
    mean_accuracy: float = 0.0
    succeeded: int = 0
    failed: int = 0
    results: List[VerificationResult] = Field(default_factory=list)


class IngestionOutput(BaseModel):
    """Final result of running one document through the ingestion graph."""
    document_id: str
    processing_timestamp: datetime
    success: bool
    document: Optional[Document] = None
    item_count: int = 0
    error: Optional[str] = None
    agent_reasoning: str = ""
