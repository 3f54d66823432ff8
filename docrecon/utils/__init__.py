"""
Shared utilities and helpers.
"""

import json
from typing import Any, Dict
from datetime import datetime


def serialize_for_json(obj: Any) -> Any:
    """Serialize objects that aren't JSON-serializable by default."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    elif hasattr(obj, 'model_dump'):  # Pydantic model
        return obj.model_dump(by_alias=True)
    elif hasattr(obj, '__dict__'):
        return obj.__dict__
    return str(obj)


def dict_to_json_string(data: Any) -> str:
    """Convert data to JSON string, handling non-serializable types."""
    return json.dumps(data, default=serialize_for_json, indent=2, ensure_ascii=False)


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safe division with default value."""
    if denominator == 0:
        return default
    return numerator / denominator
