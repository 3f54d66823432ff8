"""
CSV export record schema.
One flattened row per purchase order line item.
"""

from typing import Optional, List
from pydantic import BaseModel


class CsvRecord(BaseModel):
    """A single export row pairing one PO item with at most one import item."""
    import_doc_num: Optional[str] = None
    IMPORT_LINE: Optional[str] = None
    cust_po: Optional[str] = None
    CO_PREFIX: Optional[str] = None
    PRODUCT_CODE: Optional[str] = None
    CUST_CODE: Optional[str] = None
    CUST_NAME: Optional[str] = None
    item: Optional[str] = None
    ser_num: Optional[str] = None
    import_price: Optional[str] = None
    qty_ordered: Optional[str] = None
    engine_model: Optional[str] = None
    engine_num: Optional[str] = None
    cust_num: Optional[str] = None
    end_user_cust_name: Optional[str] = None
    WORK_SCOPE: Optional[str] = None
    cert_num: Optional[str] = None
    order_date: Optional[str] = None
    part_rcvd_date: Optional[str] = None
    CSN_NUMBER: Optional[str] = None
    TSN_NUMBER: Optional[str] = None


# Export column order
CSV_COLUMNS: List[str] = list(CsvRecord.model_fields.keys())
