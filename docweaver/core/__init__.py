"""
Core functionality exports for docweaver.

This module provides convenient access to the core subsystems of docweaver.
Importing from here keeps user-facing imports clean and stable:

    from docweaver.core import DocumentationGenerator, RepositoryScanner
"""

from __future__ import annotations

from docweaver.core.cache import SectionCache
from docweaver.core.graph import ModuleGraph
from docweaver.core.analyzer import analyze_source, assign_unique_names
from docweaver.core.manifest import ManifestReader
from docweaver.core.scanner import RepositoryScanner
from docweaver.core.renderer import MarkdownRenderer, module_doc_path
from docweaver.core.generator import (
    DocumentationGenerator,
    GenerationResult,
    ProjectDocumentation,
)
from docweaver.core.summarizer import (
    CachedSummarizer,
    HeuristicSummarizer,
    LLMSummarizer,
    Summarizer,
    create_summarizer,
)

__all__ = [
    "RepositoryScanner",
    "analyze_source",
    "assign_unique_names",
    "ManifestReader",
    "ModuleGraph",
    "SectionCache",
    "Summarizer",
    "HeuristicSummarizer",
    "LLMSummarizer",
    "CachedSummarizer",
    "create_summarizer",
    "MarkdownRenderer",
    "module_doc_path",
    "DocumentationGenerator",
    "GenerationResult",
    "ProjectDocumentation",
]
