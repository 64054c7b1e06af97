"""
docweaver: documentation generator for source repositories

docweaver scans a repository, statically analyses its modules, and writes
a Markdown documentation set with Mermaid architecture diagrams. Module
prose comes from docstrings or, optionally, from an OpenAI-compatible
language model, and is cached by content hash between runs.

Features include:
    • Python analysis through the ``ast`` module
    • Lightweight extraction for JavaScript, TypeScript, Go, Java and Rust
    • Module dependency flowcharts and class diagrams in Mermaid
    • Dependency inventory from requirements, pyproject, package.json, go.mod
    • Incremental regeneration through a content-addressed section cache
"""

from __future__ import annotations

from docweaver.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "docweaver Contributors"
__license__ = "Apache-2.0"
__description__ = "Generate Markdown documentation with Mermaid diagrams from source code."

__all__ = [
    "__version__",
]
