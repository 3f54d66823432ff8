"""
Document and rule stores.
In-memory repositories that can be seeded from JSON files.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from docrecon.schemas.document import Document, DocumentItem
from docrecon.schemas.rules import (
    ArcRule,
    EngineModelRule,
    PartNumberRule,
    RuleSet,
    WorkScopeRule,
)
from docrecon.utils import dict_to_json_string
from docrecon.utils.logging import setup_logging


logger = setup_logging(__name__)


class DocumentRepository:
    """
    Documents and their line items, keyed by document id.
    
    Items are held apart from their document and only ever replaced as a
    whole set, so a reader never sees a partially written item list.
    """
    
    def __init__(self, documents: Optional[Iterable[Document]] = None):
        self._documents: Dict[str, Document] = {}
        self._items: Dict[str, List[DocumentItem]] = {}
        for document in documents or []:
            self.upsert(document)
    
    def __len__(self) -> int:
        return len(self._documents)
    
    def get(self, document_id: str) -> Optional[Document]:
        """Document with its items attached, or None."""
        document = self._documents.get(document_id)
        if document is None:
            return None
        return document.model_copy(update={"document_items": self.get_items(document_id)})
    
    def get_many(self, document_ids: Sequence[str]) -> List[Document]:
        """Documents in the order requested; unknown ids are skipped."""
        documents = []
        for document_id in document_ids:
            document = self.get(document_id)
            if document is None:
                logger.warning(f"Document {document_id} not found")
                continue
            documents.append(document)
        return documents
    
    def get_items(self, document_id: str) -> List[DocumentItem]:
        return list(self._items.get(document_id, []))
    
    def upsert(self, document: Document) -> Document:
        """
        Insert or replace a document.
        
        Items attached to the document replace the stored set; a document
        without items leaves the stored set alone.
        """
        if not document.id:
            raise ValueError("Cannot store a document without an id")
        
        items = document.document_items
        self._documents[document.id] = document.model_copy(update={"document_items": []})
        if items:
            self.replace_items(document.id, items)
        return self.get(document.id)
    
    def replace_items(self, document_id: str, items: Sequence[DocumentItem]) -> None:
        """Swap in a new item set for a document in one step."""
        self._items[document_id] = [
            item.model_copy(update={"document_id": document_id}) for item in items
        ]
    
    def find_import_documents(self, import_numbers: Iterable[str]) -> Dict[str, Document]:
        """import_number -> import declaration, for the numbers given."""
        wanted = {number for number in import_numbers if number}
        found: Dict[str, Document] = {}
        for document_id, document in self._documents.items():
            if document.is_import_declaration() and document.import_number in wanted:
                found[document.import_number] = self.get(document_id)
        return found
    
    def all(self) -> List[Document]:
        return [self.get(document_id) for document_id in self._documents]
    
    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "DocumentRepository":
        """
        Load documents from a JSON file.
        
        The file holds either a list of documents or an object with a
        "documents" list. Each document may carry its "document_items".
        A record that fails validation is logged and skipped.
        """
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Document store not found: {path}. Using empty store.")
            return cls()
        
        if isinstance(data, dict):
            data = data.get("documents", [])
        
        repository = cls()
        skipped = 0
        for index, document_dict in enumerate(data):
            try:
                repository.upsert(Document(**document_dict))
            except (ValidationError, ValueError, TypeError) as e:
                skipped += 1
                logger.warning(f"Skipping document record {index} in {path}: {e}")
        
        logger.info(f"Loaded {len(repository)} documents from {path} ({skipped} skipped)")
        return repository
    
    def save_to_file(self, path: Union[str, Path]) -> Path:
        """Write every document, items included, as JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "documents": [document.model_dump(mode="json") for document in self.all()]
        }
        path.write_text(dict_to_json_string(payload))
        logger.info(f"Saved {len(self)} documents to {path}")
        return path


class RuleRepository:
    """The four substitution rule tables, kept in list order."""
    
    def __init__(self, rule_set: Optional[RuleSet] = None):
        self._rule_set = rule_set or RuleSet()
    
    def list_arc_rules(self) -> List[ArcRule]:
        return list(self._rule_set.arc_rules)
    
    def list_engine_model_rules(self) -> List[EngineModelRule]:
        return list(self._rule_set.engine_model_rules)
    
    def list_work_scope_rules(self) -> List[WorkScopeRule]:
        return list(self._rule_set.work_scope_rules)
    
    def list_part_number_rules(self) -> List[PartNumberRule]:
        return list(self._rule_set.part_number_rules)
    
    def get_rule_set(self) -> RuleSet:
        return RuleSet(
            arc_rules=self.list_arc_rules(),
            engine_model_rules=self.list_engine_model_rules(),
            work_scope_rules=self.list_work_scope_rules(),
            part_number_rules=self.list_part_number_rules(),
        )
    
    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "RuleRepository":
        """Load rule tables from a JSON object keyed by table name."""
        try:
            with open(path, "r") as f:
                data: Dict[str, Any] = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Rule store not found: {path}. Using no rules.")
            return cls()
        
        rule_set = RuleSet(**data)
        logger.info(
            f"Loaded rules from {path}: "
            f"{len(rule_set.arc_rules)} ARC, "
            f"{len(rule_set.engine_model_rules)} engine model, "
            f"{len(rule_set.work_scope_rules)} work scope, "
            f"{len(rule_set.part_number_rules)} part number"
        )
        return cls(rule_set)
