"""
Shared fixtures. ENV=test selects TestConfig: mock inference, no log file.
"""

import os

os.environ.setdefault("ENV", "test")

import pytest
from datetime import datetime

from docrecon.schemas.document import Document, DocumentItem, DocumentType


@pytest.fixture
def po_document():
    """A two-page PO with three items."""
    return Document(
        id="po-1",
        document_type=DocumentType.PURCHASE_ORDER,
        co_code="C01",
        import_number="12/3456789",
        po_number="PO-1001",
        end_user_customer_name="Mock Airline",
        end_user_customer_number="EU-77",
        work_scope="FULL OVERHAUL",
        arc_requirement="EASA FORM 1",
        receive_date=datetime(2024, 1, 5),
        tsn="12000",
        csn="8000",
        page_texts=["page one", "page two"],
        t_po_number_page=0,
        t_end_user_customer_name_page=0,
        t_work_scope_page=1,
        t_arc_requirement_page=1,
        t_tsn_page=1,
        t_csn_page=1,
        document_items=[
            DocumentItem(
                part_number="A100",
                quantity_ordered="5 EA",
                engine_model="CFM56-7B",
                t_part_number_page=0,
                t_quantity_ordered_page=0,
                t_engine_model_page=0,
            ),
            DocumentItem(
                part_number="B200",
                quantity_ordered="2",
                serial_number="SN-9",
                t_part_number_page=0,
                t_quantity_ordered_page=1,
                t_serial_number_page=1,
            ),
            DocumentItem(
                part_number="C300",
                quantity_ordered="1",
                t_part_number_page=1,
                t_quantity_ordered_page=1,
            ),
        ],
    )


@pytest.fixture
def import_document():
    """Import declaration resolving po-1's import number."""
    return Document(
        id="imp-1",
        document_type=DocumentType.IMPORT_DECLARATION,
        customer_name="Mock Airline Ltd",
        import_number="12/3456789",
        receive_date=datetime(2024, 1, 2),
        page_texts=["import page"],
        t_import_number_page=0,
        document_items=[
            DocumentItem(part_number="A100", quantity_ordered="5 EA", import_price="150.00"),
            DocumentItem(part_number="B200", quantity_ordered="2", import_price="75.50"),
        ],
    )
