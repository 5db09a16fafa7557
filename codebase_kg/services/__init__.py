from __future__ import annotations

from .graph_service import KnowledgeGraphIngestor
from .protocols import ConnectionProtocol, IngestorProtocol

__all__ = ["ConnectionProtocol", "IngestorProtocol", "KnowledgeGraphIngestor"]
