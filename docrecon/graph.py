"""
LangGraph orchestration for the document ingestion workflow.
Defines the graph structure and node routing logic.
"""

from typing import Literal, Optional

from langgraph.graph import StateGraph, END

from docrecon.state import IngestionState
from docrecon.repository import DocumentRepository, RuleRepository
from docrecon.agents.inference import inference_agent
from docrecon.agents.folding import folding_agent
from docrecon.agents.rules import rules_agent
from docrecon.agents.persistence import persistence_agent


def route_after_inference(state: IngestionState) -> Literal["folding_agent", "end"]:
    """Route after inference."""
    if state.inference_error or not state.inference_result:
        return "end"
    return "folding_agent"


def route_after_folding(state: IngestionState) -> Literal["rules_agent", "end"]:
    """Route after folding."""
    if state.folding_error or not state.folded:
        return "end"
    return "rules_agent"


def route_after_rules(state: IngestionState) -> Literal["persistence_agent", "end"]:
    """Route after item rules."""
    if state.rules_error:
        return "end"
    return "persistence_agent"


def build_ingestion_graph(
    documents: DocumentRepository,
    rules: Optional[RuleRepository] = None,
):
    """
    Build the LangGraph workflow for document ingestion.
    
    Flow:
    1. Inference Agent - Page annotations from the AI service
    2. Folding Agent - Fold pages into a document with provenance
    3. Rules Agent - Strip engine model title labels from items
    4. Persistence Agent - Store the document and its items
    
    Any phase that records an error ends the run.
    """
    rules = rules or RuleRepository()
    
    async def run_rules(state: IngestionState) -> IngestionState:
        return await rules_agent(state, rules.list_engine_model_rules())
    
    async def run_persistence(state: IngestionState) -> IngestionState:
        return await persistence_agent(state, documents)
    
    graph = StateGraph(IngestionState)
    
    graph.add_node("inference_agent", inference_agent)
    graph.add_node("folding_agent", folding_agent)
    graph.add_node("rules_agent", run_rules)
    graph.add_node("persistence_agent", run_persistence)
    
    graph.set_entry_point("inference_agent")
    
    graph.add_conditional_edges(
        "inference_agent",
        route_after_inference,
        {
            "folding_agent": "folding_agent",
            "end": END,
        }
    )
    
    graph.add_conditional_edges(
        "folding_agent",
        route_after_folding,
        {
            "rules_agent": "rules_agent",
            "end": END,
        }
    )
    
    graph.add_conditional_edges(
        "rules_agent",
        route_after_rules,
        {
            "persistence_agent": "persistence_agent",
            "end": END,
        }
    )
    
    graph.add_edge("persistence_agent", END)
    
    return graph.compile()
