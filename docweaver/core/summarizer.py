"""Module and project summarizers.

A summarizer turns an analysed module into the prose paragraph shown at the
top of its documentation page, and the set of module summaries into the
project overview on the index page.

- :class:`HeuristicSummarizer` works offline from docstrings and symbol
  counts. It is deterministic and always available, which also makes it
  the fallback when a model call fails.
- :class:`LLMSummarizer` asks an OpenAI-compatible chat-completions
  endpoint.
- :class:`CachedSummarizer` wraps either one with a :class:`SectionCache`
  so unchanged modules are never summarised twice.

Typical usage::

    from docweaver.core.summarizer import create_summarizer

    summarizer = create_summarizer(config)
    try:
        text = await summarizer.summarize_module(module, source)
    finally:
        await summarizer.aclose()
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from docweaver.core.cache import SectionCache, make_key
from docweaver.exceptions import ConfigError, LLMError
from docweaver.models import ModuleInfo, SourceFile
from docweaver.utils.http import HTTPClient
from docweaver.utils.logger import get_logger
from docweaver.constants import (
    DEFAULT_API_BASE,
    DEFAULT_MAX_SOURCE_CHARS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
)

logger = get_logger("summarizer")

__all__ = [
    "Summarizer",
    "HeuristicSummarizer",
    "LLMSummarizer",
    "CachedSummarizer",
    "create_summarizer",
    "build_module_prompt",
    "sanitize_response",
]

SYSTEM_PROMPT = (
    "You are a senior engineer writing reference documentation for a code "
    "repository. Answer with one or two short Markdown paragraphs describing "
    "what the code is for and how its main pieces fit together. Do not "
    "repeat the symbol list, do not add headings, and do not wrap the "
    "answer in a code block."
)

_FENCE_CLOSE = re.compile(r"\n?```\s*$")

_MAX_NAMED_SYMBOLS = 3
_MAX_PROJECT_LINES = 200


class Summarizer(ABC):
    """Interface shared by all summarizers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used to namespace cache entries."""

    @abstractmethod
    async def summarize_module(self, module: ModuleInfo, source: SourceFile) -> str:
        """Return a prose summary of one module."""

    @abstractmethod
    async def summarize_project(
        self,
        project_name: str,
        module_summaries: Mapping[str, str],
        *,
        languages: Optional[Mapping[str, int]] = None,
    ) -> str:
        """Return an overview of the whole project."""

    async def aclose(self) -> None:
        """Release any resources held by the summarizer."""


# ---------------------------------------------------------------------------
# Heuristic
# ---------------------------------------------------------------------------


def _plural(count: int, word: str) -> str:
    suffix = "es" if word.endswith("s") else "s"
    return f"{count} {word}" if count == 1 else f"{count} {word}{suffix}"


def _first_paragraph(text: str) -> str:
    paragraph = re.split(r"\n\s*\n", text.strip(), maxsplit=1)[0]
    return " ".join(paragraph.split())


def _named(names: List[str]) -> str:
    shown = ", ".join(names[:_MAX_NAMED_SYMBOLS])
    return f"{shown}, ..." if len(names) > _MAX_NAMED_SYMBOLS else shown


class HeuristicSummarizer(Summarizer):
    """Offline summarizer built from docstrings and symbol counts."""

    @property
    def name(self) -> str:
        return "heuristic"

    async def summarize_module(self, module: ModuleInfo, source: SourceFile) -> str:
        return self.describe(module)

    def describe(self, module: ModuleInfo) -> str:
        """Synchronous form of :meth:`summarize_module`."""
        if module.docstring and module.docstring.strip():
            return _first_paragraph(module.docstring)

        parts: List[str] = []
        if module.classes:
            names = [cls.name for cls in module.classes]
            parts.append(f"{_plural(len(names), 'class')} ({_named(names)})")
        if module.functions:
            names = [func.name for func in module.functions]
            parts.append(f"{_plural(len(names), 'function')} ({_named(names)})")

        if parts:
            sentence = f"Defines {' and '.join(parts)}."
        elif module.constants:
            sentence = f"Defines {_plural(len(module.constants), 'constant')} ({_named(module.constants)})."
        else:
            sentence = "Contains no top-level declarations."

        if module.errors:
            sentence += f" Analysis was incomplete: {module.errors[0]}."
        return sentence

    async def summarize_project(
        self,
        project_name: str,
        module_summaries: Mapping[str, str],
        *,
        languages: Optional[Mapping[str, int]] = None,
    ) -> str:
        count = len(module_summaries)
        if count == 0:
            return f"{project_name} contains no analysable source files."

        sentence = f"{project_name} consists of {_plural(count, 'module')}"
        ranked = Counter(languages or {}).most_common(2)
        if ranked:
            written = " and ".join(f"{language} ({total})" for language, total in ranked)
            sentence += f", written mainly in {written}"
        return sentence + "."


# ---------------------------------------------------------------------------
# Language model
# ---------------------------------------------------------------------------


def build_module_prompt(
    module: ModuleInfo,
    source: SourceFile,
    *,
    max_source_chars: int = DEFAULT_MAX_SOURCE_CHARS,
) -> str:
    """Assemble the user prompt describing one module."""
    content = source.content
    truncated = len(content) > max_source_chars
    if truncated:
        content = content[:max_source_chars]

    outline = module.outline()
    lines = [
        f"Module: {module.name}",
        f"Path: {module.path}",
        f"Language: {module.language}",
        f"Imports: {', '.join(module.imports) if module.imports else 'none'}",
        "Outline:",
    ]
    if outline:
        lines.extend(f"  {entry}" for entry in outline)
    else:
        lines.append("  (empty)")
    lines.append("")
    lines.append("Source:")
    lines.append(f"```{module.language.lower()}")
    lines.append(content.rstrip("\n"))
    lines.append("```")
    if truncated:
        lines.append(f"(source truncated to the first {max_source_chars} characters)")
    return "\n".join(lines)


def build_project_prompt(project_name: str, module_summaries: Mapping[str, str]) -> str:
    lines = [f"Project: {project_name}", "", "Module summaries:"]
    items = sorted(module_summaries.items())
    for name, summary in items[:_MAX_PROJECT_LINES]:
        lines.append(f"- {name}: {_first_paragraph(summary)}")
    if len(items) > _MAX_PROJECT_LINES:
        lines.append(f"- ... and {len(items) - _MAX_PROJECT_LINES} more modules")
    lines.append("")
    lines.append("Write an overview of the project for the top of its documentation.")
    return "\n".join(lines)


def sanitize_response(text: str) -> str:
    """Strip an outer code fence and a leading Markdown heading."""
    text = text.strip()
    if text.startswith("```"):
        newline = text.find("\n")
        text = text[newline + 1 :] if newline != -1 else ""
        text = _FENCE_CLOSE.sub("", text).strip()

    lines = text.splitlines()
    if lines and lines[0].lstrip().startswith("#"):
        lines = lines[1:]
    return "\n".join(lines).strip()


class LLMSummarizer(Summarizer):
    """Summarizer backed by an OpenAI-compatible chat-completions API.

    Args:
        http_client: Client used for requests.
        model: Model identifier sent with every request.
        api_key: Bearer token for the ``Authorization`` header.
        base_url: API root; ``/chat/completions`` is appended.
        temperature: Sampling temperature.
        max_tokens: Completion length limit.
        max_source_chars: Source characters included per module prompt.
        owns_client: Close ``http_client`` in :meth:`aclose`.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_API_BASE,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        max_source_chars: int = DEFAULT_MAX_SOURCE_CHARS,
        owns_client: bool = False,
    ) -> None:
        self.http_client = http_client
        self.model = model
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_source_chars = max_source_chars
        self.owns_client = owns_client

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def summarize_module(self, module: ModuleInfo, source: SourceFile) -> str:
        prompt = build_module_prompt(module, source, max_source_chars=self.max_source_chars)
        logger.debug("Requesting summary for %s from %s", module.name, self.model)
        return await self._complete(prompt)

    async def summarize_project(
        self,
        project_name: str,
        module_summaries: Mapping[str, str],
        *,
        languages: Optional[Mapping[str, int]] = None,
    ) -> str:
        return await self._complete(build_project_prompt(project_name, module_summaries))

    async def aclose(self) -> None:
        if self.owns_client:
            await self.http_client.close()

    async def _complete(self, prompt: str) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None

        data = await self.http_client.post_json(self.endpoint, payload, headers=headers)
        text = sanitize_response(self._extract_content(data))
        if not text:
            raise LLMError(
                "Model returned only formatting, no summary text",
                model=self.model,
                url=self.endpoint,
            )
        return text

    def _extract_content(self, data: Mapping[str, Any]) -> str:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise LLMError(
                "Response contained no choices",
                model=self.model,
                url=self.endpoint,
                response_body=str(data),
            )

        first = choices[0] if isinstance(choices[0], Mapping) else {}
        message = first.get("message")
        content = message.get("content") if isinstance(message, Mapping) else None
        if not isinstance(content, str) or not content.strip():
            raise LLMError(
                "Response contained empty content",
                model=self.model,
                url=self.endpoint,
                response_body=str(data),
            )
        return content


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


class CachedSummarizer(Summarizer):
    """Serve summaries from a :class:`SectionCache`, delegating on a miss."""

    def __init__(self, inner: Summarizer, cache: SectionCache) -> None:
        self.inner = inner
        self.cache = cache
        self.hits = 0
        self.misses = 0

    @property
    def name(self) -> str:
        return self.inner.name

    async def summarize_module(self, module: ModuleInfo, source: SourceFile) -> str:
        key = make_key(self.name, "module", module.name, module.digest or source.digest)
        cached = self.cache.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        summary = await self.inner.summarize_module(module, source)
        self.cache.put(key, summary)
        return summary

    async def summarize_project(
        self,
        project_name: str,
        module_summaries: Mapping[str, str],
        *,
        languages: Optional[Mapping[str, int]] = None,
    ) -> str:
        flattened = [part for item in sorted(module_summaries.items()) for part in item]
        key = make_key(self.name, "project", project_name, make_key(*flattened))
        cached = self.cache.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        summary = await self.inner.summarize_project(
            project_name, module_summaries, languages=languages
        )
        self.cache.put(key, summary)
        return summary

    async def aclose(self) -> None:
        await self.inner.aclose()


def create_summarizer(config: Any, http_client: Optional[HTTPClient] = None) -> Summarizer:
    """Build the summarizer selected by ``config.provider``.

    Args:
        config: A :class:`~docweaver.config.DocWeaverConfig`.
        http_client: Client to use for the ``openai`` provider. When omitted
            the summarizer creates and owns its own client.

    Raises:
        ConfigError: Unknown provider, or the API key variable is unset.
    """
    provider = config.provider
    if provider == "heuristic":
        return HeuristicSummarizer()

    if provider == "openai":
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ConfigError(
                f"Environment variable {config.api_key_env} must hold an API key "
                "for the openai provider",
                option="api_key_env",
            )
        owns_client = http_client is None
        client = http_client or HTTPClient(max_concurrency=config.concurrency)
        return LLMSummarizer(
            client,
            model=config.model,
            api_key=api_key,
            base_url=config.api_base,
            owns_client=owns_client,
        )

    raise ConfigError(f"Unknown summarizer provider: {provider}", option="provider")
