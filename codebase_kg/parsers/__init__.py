from __future__ import annotations

from .graph_assembler import GraphAssembler
from .pipeline import KnowledgeGraphExtractor, extract_knowledge_graph
from .project import ParsedProject, load_project

__all__ = [
    "GraphAssembler",
    "KnowledgeGraphExtractor",
    "ParsedProject",
    "extract_knowledge_graph",
    "load_project",
]
