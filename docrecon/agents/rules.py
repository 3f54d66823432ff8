"""
Rule Substitution
Rewrites export record fields from the ARC, engine model, work scope and
part number lookup tables.

Each rule kind is applied independently. Within a kind the first rule in
list order that matches wins and the rest are not consulted.
"""

from typing import List, Optional, Sequence

from docrecon.state import IngestionState
from docrecon.schemas.csv_record import CsvRecord
from docrecon.schemas.rules import (
    ArcRule,
    EngineModelRule,
    PartNumberRule,
    RuleSet,
    WorkScopeRule,
)
from docrecon.utils.logging import setup_logging, log_agent_action


logger = setup_logging(__name__)


def apply_arc_rules(rules: Sequence[ArcRule], record: CsvRecord) -> CsvRecord:
    """Replace cert_num with result_display when it contains arc_appearance."""
    if not record.cert_num:
        return record
    for rule in rules:
        if not rule.arc_appearance or not rule.result_display:
            continue
        if rule.arc_appearance in record.cert_num:
            return record.model_copy(update={"cert_num": rule.result_display})
    return record


def apply_engine_model_rules(rules: Sequence[EngineModelRule], record: CsvRecord) -> CsvRecord:
    """
    Replace engine_model with result_display.
    
    Both conditions are required: the value contains engine_model_title
    and starts with common_prefix.
    """
    if not record.engine_model:
        return record
    for rule in rules:
        if not rule.engine_model_title or not rule.common_prefix or not rule.result_display:
            continue
        if (
            rule.engine_model_title in record.engine_model
            and record.engine_model.startswith(rule.common_prefix)
        ):
            return record.model_copy(update={"engine_model": rule.result_display})
    return record


def apply_work_scope_rules(rules: Sequence[WorkScopeRule], record: CsvRecord) -> CsvRecord:
    """Replace WORK_SCOPE with result_display when it contains overhaul_keywords."""
    if not record.WORK_SCOPE:
        return record
    for rule in rules:
        if not rule.overhaul_keywords or not rule.result_display:
            continue
        if rule.overhaul_keywords in record.WORK_SCOPE:
            return record.model_copy(update={"WORK_SCOPE": rule.result_display})
    return record


def apply_part_number_rules(rules: Sequence[PartNumberRule], record: CsvRecord) -> CsvRecord:
    """Set PRODUCT_CODE when item contains part_number. item itself is untouched."""
    if not record.item:
        return record
    for rule in rules:
        if not rule.part_number or not rule.product_code:
            continue
        if rule.part_number in record.item:
            return record.model_copy(update={"PRODUCT_CODE": rule.product_code})
    return record


def apply_rules(rule_set: RuleSet, record: CsvRecord) -> CsvRecord:
    """Apply all four rule kinds to a record."""
    record = apply_arc_rules(rule_set.arc_rules, record)
    record = apply_engine_model_rules(rule_set.engine_model_rules, record)
    record = apply_work_scope_rules(rule_set.work_scope_rules, record)
    record = apply_part_number_rules(rule_set.part_number_rules, record)
    return record


def strip_engine_model_title(
    rules: Sequence[EngineModelRule],
    engine_model: Optional[str],
) -> Optional[str]:
    """
    Remove a leading "<title>:" or "<title> " label from an engine model.

    Only the label and its separator are removed; the remainder is returned
    untrimmed ("ESM: CFM56" -> " CFM56").
    """
    if not engine_model:
        return engine_model
    for rule in rules:
        if not rule.engine_model_title:
            continue
        for pattern in (f"{rule.engine_model_title}:", f"{rule.engine_model_title} "):
            if engine_model.startswith(pattern):
                return engine_model[len(pattern):]
    return engine_model


async def rules_agent(
    state: IngestionState,
    engine_model_rules: Optional[List[EngineModelRule]] = None,
) -> IngestionState:
    """
    Rules Agent node.
    
    Strips engine model title labels from folded items before they are
    persisted.
    
    Updates state:
    - folded (item engine models)
    - rules_applied
    - rules_error (if applicable)
    """
    logger.info(f"[RulesAgent] Applying item rules for document {state.document_id}")
    
    if not state.folded or not engine_model_rules:
        return state
    
    try:
        changed = 0
        for item in state.folded.items:
            stripped = strip_engine_model_title(engine_model_rules, item.engine_model)
            if stripped != item.engine_model:
                item.engine_model = stripped.strip() if stripped else stripped
                changed += 1
        state.rules_applied = changed
        
        log_agent_action(
            logger,
            "RulesAgent",
            "Item rules applied",
            {"changed_items": changed},
            document_id=state.document_id,
        )
        state.add_reasoning(
            agent_name="RulesAgent",
            message=f"Engine model titles stripped on {changed} item(s).",
            action="rules_complete",
        )
    
    except Exception as e:
        logger.exception(f"[RulesAgent] Unexpected error: {e}")
        state.rules_error = str(e)
        state.add_reasoning(
            agent_name="RulesAgent",
            message=f"Error applying rules: {str(e)}",
        )
    
    return state
