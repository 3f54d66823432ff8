"""
Trade Document Reconciliation Engine
"""

__version__ = "1.0.0"
__author__ = "AI Team"
__description__ = "Page-level provenance and PO / import declaration reconciliation"

from docrecon.main import (
    ingest_document,
    export_csv_records,
    verify_documents,
    generate_training_data,
)
from docrecon.state import IngestionState
from docrecon.schemas.output import IngestionOutput, AccuracyResult, VerificationSummary

__all__ = [
    "ingest_document",
    "export_csv_records",
    "verify_documents",
    "generate_training_data",
    "IngestionState",
    "IngestionOutput",
    "AccuracyResult",
    "VerificationSummary",
]
