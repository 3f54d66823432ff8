"""
Tests for rule substitution.
"""

import pytest
from datetime import datetime
from pathlib import Path

import docrecon
from docrecon.agents.rules import (
    apply_arc_rules,
    apply_engine_model_rules,
    apply_part_number_rules,
    apply_rules,
    apply_work_scope_rules,
    rules_agent,
    strip_engine_model_title,
)
from docrecon.schemas.csv_record import CsvRecord
from docrecon.schemas.document import Document, DocumentItem, DocumentType, FoldedDocument
from docrecon.schemas.rules import (
    ArcRule,
    EngineModelRule,
    PartNumberRule,
    RuleSet,
    WorkScopeRule,
)
from docrecon.repository import RuleRepository
from docrecon.state import IngestionState


def test_arc_rule_substring_match():
    rules = [ArcRule(arc_appearance="EASA", result_display="EASA Form 1")]
    record = apply_arc_rules(rules, CsvRecord(cert_num="DUAL EASA/FAA"))
    assert record.cert_num == "EASA Form 1"


def test_first_matching_rule_wins():
    rules = [
        WorkScopeRule(overhaul_keywords="OVERHAUL", result_display="OH"),
        WorkScopeRule(overhaul_keywords="FULL", result_display="FULL"),
    ]
    record = apply_work_scope_rules(rules, CsvRecord(WORK_SCOPE="FULL OVERHAUL"))
    assert record.WORK_SCOPE == "OH"


def test_rules_with_missing_values_are_skipped():
    rules = [
        WorkScopeRule(overhaul_keywords="", result_display="EMPTY"),
        WorkScopeRule(overhaul_keywords="OVERHAUL", result_display=None),
    ]
    record = apply_work_scope_rules(rules, CsvRecord(WORK_SCOPE="OVERHAUL"))
    assert record.WORK_SCOPE == "OVERHAUL"


def test_engine_model_requires_title_and_prefix():
    rules = [EngineModelRule(engine_model_title="7B", common_prefix="CFM", result_display="CFM56-7B")]
    
    assert apply_engine_model_rules(rules, CsvRecord(engine_model="CFM56 7B26")).engine_model == "CFM56-7B"
    assert apply_engine_model_rules(rules, CsvRecord(engine_model="ENG CFM 7B")).engine_model == "ENG CFM 7B"
    assert apply_engine_model_rules(rules, CsvRecord(engine_model="CFM56-5B")).engine_model == "CFM56-5B"


def test_part_number_rule_sets_product_code_only():
    rules = [PartNumberRule(part_number="A100", product_code="PC-A")]
    record = apply_part_number_rules(rules, CsvRecord(item="XA100-2"))
    
    assert record.PRODUCT_CODE == "PC-A"
    assert record.item == "XA100-2"


def test_null_fields_are_untouched():
    rule_set = RuleSet(
        arc_rules=[ArcRule(arc_appearance="A", result_display="B")],
        part_number_rules=[PartNumberRule(part_number="A", product_code="P")],
    )
    record = CsvRecord()
    assert apply_rules(rule_set, record) == record


def test_rule_kinds_are_independent():
    rule_set = RuleSet(
        arc_rules=[ArcRule(arc_appearance="EASA", result_display="EASA Form 1")],
        work_scope_rules=[WorkScopeRule(overhaul_keywords="REPAIR", result_display="RP")],
    )
    original = CsvRecord(cert_num="EASA", WORK_SCOPE="OVERHAUL")
    record = apply_rules(rule_set, original)
    
    assert record.cert_num == "EASA Form 1"
    assert record.WORK_SCOPE == "OVERHAUL"
    assert original.cert_num == "EASA"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("ESM: CFM56", " CFM56"),
        ("ESM CFM56", "CFM56"),
        ("CFM56 ESM", "CFM56 ESM"),
        (None, None),
    ],
)
def test_strip_engine_model_title(value, expected):
    rules = [EngineModelRule(engine_model_title="ESM")]
    assert strip_engine_model_title(rules, value) == expected


@pytest.mark.asyncio
async def test_rules_agent_strips_titles_on_folded_items():
    state = IngestionState(
        document_id="doc-1",
        processing_timestamp=datetime(2026, 1, 1),
        document_type=DocumentType.PURCHASE_ORDER,
        folded=FoldedDocument(
            document=Document(document_type=DocumentType.PURCHASE_ORDER),
            items=[
                DocumentItem(part_number="A", engine_model="ESM: CFM56"),
                DocumentItem(part_number="B", engine_model="V2500"),
            ],
        ),
    )
    
    result = await rules_agent(state, [EngineModelRule(engine_model_title="ESM")])
    
    assert [item.engine_model for item in result.folded.items] == ["CFM56", "V2500"]
    assert result.rules_applied == 1
    assert result.rules_error is None


@pytest.mark.asyncio
async def test_rules_agent_without_rules_is_a_no_op():
    state = IngestionState(
        document_id="doc-1",
        processing_timestamp=datetime(2026, 1, 1),
        document_type=DocumentType.PURCHASE_ORDER,
    )
    result = await rules_agent(state, [])
    assert result.rules_applied == 0


def test_seeded_engine_model_rule_fires_after_title_stripping():
    rules_path = Path(docrecon.__file__).parent / "data" / "rules.json"
    engine_model_rules = RuleRepository.load_from_file(rules_path).list_engine_model_rules()
    
    ingested = strip_engine_model_title(engine_model_rules, "CFM56-7B26")
    record = apply_engine_model_rules(engine_model_rules, CsvRecord(engine_model=ingested))
    
    assert ingested == "CFM56-7B26"
    assert record.engine_model == "CFM56-7B"
