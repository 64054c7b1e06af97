"""Documentation generation pipeline.

Runs every stage end to end::

    scan -> analyse -> read manifests -> build graph
         -> summarise (cached, concurrent) -> render -> write

Typical usage::

    from docweaver.config import load_config
    from docweaver.core.cache import SectionCache
    from docweaver.core.generator import DocumentationGenerator
    from docweaver.core.summarizer import create_summarizer

    config = load_config()
    summarizer = create_summarizer(config)
    generator = DocumentationGenerator(config, summarizer, cache=SectionCache(".docweaver-cache.json"))
    result = asyncio.run(generator.generate("."))
    print(len(result.written), "files written")
"""

from __future__ import annotations

import json
import asyncio
from pathlib import Path
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from docweaver.config import DocWeaverConfig
from docweaver.core.analyzer import analyze_source, assign_unique_names
from docweaver.core.cache import SectionCache
from docweaver.core.graph import ModuleGraph
from docweaver.core.manifest import ManifestReader
from docweaver.core.renderer import MarkdownRenderer, module_doc_path
from docweaver.core.scanner import RepositoryScanner
from docweaver.core.summarizer import CachedSummarizer, HeuristicSummarizer, Summarizer
from docweaver.exceptions import DocWeaverError, FileOperationError
from docweaver.models import Dependency, ModuleInfo, SourceFile
from docweaver.utils.filesystem import remove_file, safe_read_file, safe_write_file, validate_path
from docweaver.utils.logger import get_logger, log_duration
from docweaver.constants import INDEX_FILENAME, MODULES_DIRNAME, PAGES_MANIFEST_FILENAME

logger = get_logger("generator")

__all__ = ["DocumentationGenerator", "GenerationResult", "ProjectDocumentation"]


@dataclass
class ProjectDocumentation:
    """Everything known about a repository before rendering.

    Attributes:
        name: Project name, taken from the root directory.
        root: Absolute repository root.
        modules: Analysed modules, sorted by path.
        sources: Source files keyed by module name.
        graph: Internal import graph.
        dependencies: Declared third-party dependencies.
        summaries: Module summaries keyed by module name.
        summary: Project overview.
        errors: Problems that degraded the output without stopping it.
    """

    name: str
    root: Path
    modules: List[ModuleInfo] = field(default_factory=list)
    sources: Dict[str, SourceFile] = field(default_factory=dict)
    graph: ModuleGraph = field(default_factory=lambda: ModuleGraph([]))
    dependencies: List[Dependency] = field(default_factory=list)
    summaries: Dict[str, str] = field(default_factory=dict)
    summary: str = ""
    errors: List[str] = field(default_factory=list)

    def languages(self) -> Dict[str, int]:
        """Module count per language, most common first."""
        counts = Counter(module.language for module in self.modules)
        return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


@dataclass
class GenerationResult:
    """Outcome of :meth:`DocumentationGenerator.generate`.

    ``written`` lists the files produced, or that would be produced when
    ``dry_run`` is set. ``removed`` lists stale module pages deleted from a
    previous run.
    """

    output_dir: Path
    written: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    modules: int = 0
    skipped: List[str] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0
    dry_run: bool = False


class DocumentationGenerator:
    """Build and write documentation for a repository.

    Args:
        config: Effective configuration.
        summarizer: Summarizer for module and project prose.
        cache: Optional section cache. When given, the summarizer is
            wrapped in a :class:`CachedSummarizer` and the cache is saved
            after every successful run.
    """

    def __init__(
        self,
        config: DocWeaverConfig,
        summarizer: Summarizer,
        *,
        cache: Optional[SectionCache] = None,
    ) -> None:
        self.config = config
        self.cache = cache
        if cache is not None and not isinstance(summarizer, CachedSummarizer):
            summarizer = CachedSummarizer(summarizer, cache)
        self.summarizer = summarizer
        self._fallback = HeuristicSummarizer()

    async def build(self, root: Union[str, Path]) -> ProjectDocumentation:
        """Scan, analyse and summarise the repository at ``root``."""
        root_path = Path(root).resolve()
        project = ProjectDocumentation(name=root_path.name, root=root_path)

        scanner = RepositoryScanner(
            root_path,
            exclude=self.config.exclude,
            max_file_size=self.config.max_file_size,
            include_tests=self.config.include_tests,
        )
        with log_duration(logger, "Scan and analysis"):
            pairs: List[Tuple[ModuleInfo, SourceFile]] = [
                (analyze_source(source), source) for source in scanner.scan()
            ]

        project.modules = assign_unique_names([module for module, _ in pairs])
        project.sources = {module.name: source for module, source in pairs}
        project.graph = ModuleGraph.build(project.modules)
        for module in project.modules:
            project.errors.extend(f"{module.path}: {error}" for error in module.errors)

        try:
            project.dependencies = ManifestReader(root_path).read()
        except DocWeaverError as exc:
            logger.warning("Dependency inventory unavailable: %s", exc)
            project.errors.append(str(exc))

        with log_duration(logger, "Summaries"):
            project.summaries = await self._summarize_modules(pairs, project.errors)
            project.summary = await self._summarize_project(project)

        return project

    async def generate(
        self,
        root: Union[str, Path],
        output_dir: Optional[Union[str, Path]] = None,
        *,
        dry_run: bool = False,
    ) -> GenerationResult:
        """Generate documentation for ``root`` into ``output_dir``.

        Args:
            root: Repository root.
            output_dir: Target directory. Defaults to ``config.output_dir``
                resolved against ``root``.
            dry_run: Compute everything but write nothing.

        Raises:
            FileOperationError: A page or the cache could not be written.
        """
        project = await self.build(root)
        target = (
            Path(output_dir)
            if output_dir is not None
            else self.config.resolve_path(project.root, self.config.output_dir)
        )

        pages = self.render(project)
        result = GenerationResult(
            output_dir=target,
            modules=len(project.modules),
            skipped=list(project.errors),
            dry_run=dry_run,
        )

        stale = self._stale_pages(target, pages)
        if dry_run:
            result.written = [target / relative for relative in pages]
            result.removed = stale
            logger.info("Dry run: %d file(s) would be written to %s", len(pages), target)
        else:
            for relative, content in pages.items():
                result.written.append(safe_write_file(target / relative, content))
            result.removed = [path for path in stale if remove_file(path)]
            safe_write_file(
                target / PAGES_MANIFEST_FILENAME,
                json.dumps({"version": 1, "pages": sorted(pages)}, indent=2) + "\n",
            )
            if self.cache is not None:
                self.cache.save()
            logger.info("Wrote %d file(s) to %s", len(result.written), target)

        if isinstance(self.summarizer, CachedSummarizer):
            result.cache_hits = self.summarizer.hits
            result.cache_misses = self.summarizer.misses
        return result

    def render(self, project: ProjectDocumentation) -> Dict[str, str]:
        """Render every page, keyed by path relative to the output directory."""
        renderer = MarkdownRenderer(
            project.name,
            direction=self.config.diagram_direction,
            max_diagram_nodes=self.config.max_diagram_nodes,
        )
        pages: Dict[str, str] = {INDEX_FILENAME: renderer.render_index(project)}
        for module in project.modules:
            pages[module_doc_path(module.name)] = renderer.render_module(
                module,
                project.summaries.get(module.name, ""),
                project.graph,
            )
        return pages

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _summarize_modules(
        self,
        pairs: List[Tuple[ModuleInfo, SourceFile]],
        errors: List[str],
    ) -> Dict[str, str]:
        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def summarize(module: ModuleInfo, source: SourceFile) -> str:
            async with semaphore:
                try:
                    return await self.summarizer.summarize_module(module, source)
                except DocWeaverError as exc:
                    logger.warning(
                        "Summary failed for %s, using heuristic summary: %s",
                        module.name,
                        exc,
                    )
                    errors.append(f"{module.path}: summary failed: {exc}")
                    return self._fallback.describe(module)

        results = await asyncio.gather(*(summarize(module, source) for module, source in pairs))
        return {module.name: text for (module, _), text in zip(pairs, results)}

    async def _summarize_project(self, project: ProjectDocumentation) -> str:
        try:
            return await self.summarizer.summarize_project(
                project.name,
                project.summaries,
                languages=project.languages(),
            )
        except DocWeaverError as exc:
            logger.warning("Project summary failed, using heuristic summary: %s", exc)
            project.errors.append(f"project summary failed: {exc}")
            return await self._fallback.summarize_project(
                project.name,
                project.summaries,
                languages=project.languages(),
            )

    def _stale_pages(self, target: Path, pages: Dict[str, str]) -> List[Path]:
        """Pages the previous run wrote that this run no longer produces.

        Files docweaver did not record in the pages manifest are never
        returned, so hand-written pages next to the output survive.
        """
        stale: List[Path] = []
        for relative in _previous_pages(target):
            if relative in pages or not relative.startswith(f"{MODULES_DIRNAME}/"):
                continue
            try:
                path = validate_path(target / relative, base_dir=target)
            except FileOperationError:
                logger.warning("Ignoring page outside %s in pages manifest: %s", target, relative)
                continue
            if path.is_file():
                stale.append(path)
        return sorted(stale)


def _previous_pages(target: Path) -> List[str]:
    path = target / PAGES_MANIFEST_FILENAME
    if not path.is_file():
        return []
    try:
        document = json.loads(safe_read_file(path))
    except (DocWeaverError, ValueError) as exc:
        logger.warning("Ignoring unreadable pages manifest %s: %s", path, exc)
        return []

    pages = document.get("pages") if isinstance(document, dict) else None
    if not isinstance(pages, list):
        logger.warning("Ignoring malformed pages manifest %s", path)
        return []
    return [page for page in pages if isinstance(page, str)]
