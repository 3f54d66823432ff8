"""
Substitution rule schemas.
Small lookup tables applied to export records.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class ArcRule(BaseModel):
    """Rewrites cert_num when it contains arc_appearance."""
    id: Optional[str] = None
    arc_appearance: Optional[str] = None
    result_display: Optional[str] = None


class EngineModelRule(BaseModel):
    """Rewrites engine_model when it contains the title and starts with the prefix."""
    id: Optional[str] = None
    engine_model_title: Optional[str] = None
    common_prefix: Optional[str] = None
    result_display: Optional[str] = None


class WorkScopeRule(BaseModel):
    """Rewrites WORK_SCOPE when it contains overhaul_keywords."""
    id: Optional[str] = None
    overhaul_keywords: Optional[str] = None
    result_display: Optional[str] = None


class PartNumberRule(BaseModel):
    """Sets PRODUCT_CODE when the item contains part_number."""
    id: Optional[str] = None
    part_number: Optional[str] = None
    product_code: Optional[str] = None


class RuleSet(BaseModel):
    """All four rule tables, in lookup order."""
    arc_rules: List[ArcRule] = Field(default_factory=list)
    engine_model_rules: List[EngineModelRule] = Field(default_factory=list)
    work_scope_rules: List[WorkScopeRule] = Field(default_factory=list)
    part_number_rules: List[PartNumberRule] = Field(default_factory=list)
    
    def is_empty(self) -> bool:
        return not (
            self.arc_rules
            or self.engine_model_rules
            or self.work_scope_rules
            or self.part_number_rules
        )
