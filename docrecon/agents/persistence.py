"""
Persistence Agent
Stores the folded document and swaps in its item set.
"""

from docrecon.state import IngestionState
from docrecon.repository import DocumentRepository
from docrecon.utils.logging import setup_logging, log_agent_action


logger = setup_logging(__name__)


async def persistence_agent(state: IngestionState, repository: DocumentRepository) -> IngestionState:
    """
    Persistence Agent node.
    
    Updates state:
    - persisted
    - persistence_error (if applicable)
    """
    logger.info(f"[PersistenceAgent] Storing document {state.document_id}")
    
    if not state.folded:
        error_msg = "Nothing to persist"
        state.persistence_error = error_msg
        state.add_reasoning(agent_name="PersistenceAgent", message=error_msg)
        return state
    
    try:
        repository.upsert(state.folded.document)
        repository.replace_items(state.document_id, state.folded.items)
        state.persisted = True
        
        log_agent_action(
            logger,
            "PersistenceAgent",
            "Document stored",
            {"items": len(state.folded.items)},
            document_id=state.document_id,
        )
        state.add_reasoning(
            agent_name="PersistenceAgent",
            message=f"Stored document with {len(state.folded.items)} item(s).",
            action="persisted",
        )
    
    except Exception as e:
        logger.exception(f"[PersistenceAgent] Unexpected error: {e}")
        state.persistence_error = str(e)
        state.add_reasoning(
            agent_name="PersistenceAgent",
            message=f"Error storing document: {str(e)}",
        )
    
    return state
