from __future__ import annotations

from .base import BaseExtractor
from .call_graph import CallGraphExtractor
from .dependency_injection import DependencyInjectionExtractor
from .import_usage import ImportUsageExtractor
from .inheritance import InheritanceExtractor
from .routes import RouteExtractor
from .structure import StructureExtractor
from .type_usage import TypeUsageExtractor

DEFAULT_EXTRACTORS: tuple[type[BaseExtractor], ...] = (
    StructureExtractor,
    DependencyInjectionExtractor,
    CallGraphExtractor,
    TypeUsageExtractor,
    ImportUsageExtractor,
    InheritanceExtractor,
    RouteExtractor,
)

__all__ = [
    "DEFAULT_EXTRACTORS",
    "BaseExtractor",
    "CallGraphExtractor",
    "DependencyInjectionExtractor",
    "ImportUsageExtractor",
    "InheritanceExtractor",
    "RouteExtractor",
    "StructureExtractor",
    "TypeUsageExtractor",
]
