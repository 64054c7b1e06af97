"""Pattern-based symbol extraction for brace-delimited languages.

JavaScript, TypeScript, Go, Java and Rust are not parsed into syntax
trees. Instead, comments and string literals are masked out (keeping every
character offset intact), brace depth is computed over the masked text,
and declarations are matched with regular expressions at the depth where
they can legally appear. This is deliberately approximate: it recovers the
outline a reader needs, not a compiler-grade model.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from docweaver.models import ClassInfo, ModuleInfo, Symbol

__all__ = ["extract", "mask_text", "SUPPORTED_LANGUAGES"]

# ---------------------------------------------------------------------------
# Masking and depth
# ---------------------------------------------------------------------------

_C_COMMENTS = r"//[^\n]*|/\*.*?\*/"
_DOUBLE_QUOTED = r'"(?:\\.|[^"\\\n])*"'
_SINGLE_QUOTED = r"'(?:\\.|[^'\\\n])*'"
_BACKTICK = r"`(?:\\.|[^`\\])*`"

_MASKS: Dict[str, Pattern[str]] = {
    "JavaScript": re.compile("|".join([_C_COMMENTS, _DOUBLE_QUOTED, _SINGLE_QUOTED, _BACKTICK]), re.S),
    "TypeScript": re.compile("|".join([_C_COMMENTS, _DOUBLE_QUOTED, _SINGLE_QUOTED, _BACKTICK]), re.S),
    "Go": re.compile("|".join([_C_COMMENTS, _DOUBLE_QUOTED, _BACKTICK, r"'(?:\\.|[^'\\\n])'"]), re.S),
    "Java": re.compile("|".join([_C_COMMENTS, r'"""(?:.|\n)*?"""', _DOUBLE_QUOTED, _SINGLE_QUOTED]), re.S),
    # Single quotes are left alone in Rust: lifetimes ('a) are not literals.
    "Rust": re.compile("|".join([_C_COMMENTS, _DOUBLE_QUOTED]), re.S),
}


def mask_text(text: str, language: str) -> str:
    """Blank out comments and string bodies, preserving offsets and newlines.

    Quote characters of string literals are kept so that declarations such
    as ``import x from "y"`` still have the same shape.
    """
    pattern = _MASKS.get(language)
    if pattern is None:
        return text

    def blank(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token.startswith(("//", "/*")):
            return re.sub(r"[^\n]", " ", token)
        quote = token[0]
        inner = re.sub(r"[^\n]", " ", token[1:-1])
        return f"{quote}{inner}{token[-1]}"

    return pattern.sub(blank, text)


def _depths(masked: str) -> List[int]:
    """Brace depth in effect at each character offset."""
    depth = 0
    result = [0] * (len(masked) + 1)
    for index, char in enumerate(masked):
        result[index] = depth
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(0, depth - 1)
    result[len(masked)] = depth
    return result


def _block_end(masked: str, open_index: int) -> int:
    """Return the offset just past the brace matching ``open_index``."""
    depth = 0
    for index in range(open_index, len(masked)):
        char = masked[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return len(masked)


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


# ---------------------------------------------------------------------------
# Comments as docstrings
# ---------------------------------------------------------------------------

_COMMENT_LINE = re.compile(r"^\s*(///?|/\*\*?|\*/?|//!)")
_ATTRIBUTE_LINE = re.compile(r"^\s*(@\w|#\[|#!\[)")


def _clean_comment(lines: List[str]) -> Optional[str]:
    cleaned: List[str] = []
    for line in lines:
        stripped = line.strip()
        stripped = re.sub(r"^(///?!?|/\*\*?|\*/|\*)", "", stripped)
        stripped = re.sub(r"\*/$", "", stripped).strip()
        cleaned.append(stripped)

    while cleaned and not cleaned[0]:
        cleaned.pop(0)
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    return "\n".join(cleaned) or None


def _leading_comment(lines: List[str], line_number: int) -> Optional[str]:
    """Collect the comment block directly above a 1-based ``line_number``."""
    index = line_number - 2
    while index >= 0 and _ATTRIBUTE_LINE.match(lines[index]):
        index -= 1

    block: List[str] = []
    while index >= 0 and lines[index].strip() and _COMMENT_LINE.match(lines[index]):
        block.insert(0, lines[index])
        index -= 1
    return _clean_comment(block) if block else None


def _header_comment(lines: List[str]) -> Optional[str]:
    """Collect the first comment block of a file, skipping shebangs and blanks."""
    index = 0
    while index < len(lines) and (not lines[index].strip() or lines[index].startswith("#!")):
        index += 1

    block: List[str] = []
    while index < len(lines) and lines[index].strip() and _COMMENT_LINE.match(lines[index]):
        block.append(lines[index])
        index += 1
    return _clean_comment(block) if block else None


# ---------------------------------------------------------------------------
# Language tables
# ---------------------------------------------------------------------------

_CONTROL_WORDS = frozenset(
    {"if", "for", "while", "switch", "catch", "return", "function", "new", "else", "do", "try", "synchronized"}
)

_JS_IMPORTS = [
    re.compile(r"""^\s*import\s+(?:type\s+)?(?:[\w*${}\s,]+?\s+from\s+)?['"]([^'"]+)['"]""", re.M),
    re.compile(r"""^\s*export\s+(?:type\s+)?[\w*${}\s,]+?\s+from\s+['"]([^'"]+)['"]""", re.M),
    re.compile(r"""\brequire\(\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""\bimport\(\s*['"]([^'"]+)['"]\s*\)"""),
]
_JS_CLASS = re.compile(
    r"^[ \t]*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*)"
    r"(?:<[^>{]*>)?(?:\s+extends\s+([\w$.]+)(?:<[^>{]*>)?)?(?:\s+implements\s+([\w$.,\s]+?))?\s*\{",
    re.M,
)
_TS_INTERFACE = re.compile(
    r"^[ \t]*(?:export\s+)?interface\s+([A-Za-z_$][\w$]*)(?:<[^>{]*>)?(?:\s+extends\s+([\w$.,\s]+?))?\s*\{",
    re.M,
)
_JS_FUNCTION = re.compile(
    r"^[ \t]*(?:export\s+)?(?:default\s+)?(async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)\s*(?:<[^>(]*>)?\s*(\([^)]*\))",
    re.M,
)
_JS_ARROW = re.compile(
    r"^[ \t]*(?:export\s+)?const\s+([A-Za-z_$][\w$]*)\s*(?::[^=\n]+)?=\s*(async\s+)?(\([^)]*\)|[A-Za-z_$][\w$]*)\s*(?::[^=\n]+)?=>",
    re.M,
)
_JS_METHOD = re.compile(
    r"^[ \t]*(?:(?:public|private|protected|static|readonly|override|abstract)\s+)*(async\s+)?\*?\s*"
    r"(?:get\s+|set\s+)?([A-Za-z_$#][\w$]*)\s*(?:<[^>(]*>)?\s*(\([^)]*\))[^;{\n]*\{",
    re.M,
)

_GO_IMPORT_SINGLE = re.compile(r'^\s*import\s+(?:[\w.]+\s+)?"([^"]+)"', re.M)
_GO_IMPORT_BLOCK = re.compile(r"^\s*import\s*\((.*?)\)", re.M | re.S)
_GO_IMPORT_PATH = re.compile(r'"([^"]+)"')
_GO_TYPE = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+(struct|interface)\b", re.M)
_GO_FUNC = re.compile(
    r"^func\s+(?:\(\s*(?:\w+\s+)?\*?\s*(\w+)(?:\[[^\]]*\])?\s*\)\s*)?(\w+)\s*(?:\[[^\]]*\])?\s*(\([^)]*\))",
    re.M,
)

_JAVA_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+?)(?:\.\*)?\s*;", re.M)
_JAVA_TYPE = re.compile(
    r"^[ \t]*(?:@\w+(?:\([^)]*\))?\s+)*(?:(?:public|protected|private|abstract|final|static|sealed|non-sealed|strictfp)\s+)*"
    r"(class|interface|enum|record)\s+(\w+)(?:<[^>{]*>)?(?:\s*\([^)]*\))?"
    r"(?:\s+extends\s+([\w.<>,\s]+?))?(?:\s+implements\s+([\w.<>,\s]+?))?(?:\s+permits\s+[\w.,\s]+?)?\s*\{",
    re.M,
)
_JAVA_METHOD = re.compile(
    r"^[ \t]*(?:@\w+(?:\([^)]*\))?\s+)*(?:(?:public|protected|private|static|final|abstract|synchronized|native|default)\s+)*"
    r"(?:<[^>]+>\s+)?[\w.<>\[\],?\s]+?\s+(\w+)\s*(\([^)]*\))\s*(?:throws\s+[\w.,\s]+)?[{;]",
    re.M,
)
_JAVA_CONSTRUCTOR = re.compile(
    r"^[ \t]*(?:(?:public|protected|private)\s+)?(\w+)\s*(\([^)]*\))\s*(?:throws\s+[\w.,\s]+)?\{",
    re.M,
)

_RUST_USE = re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?use\s+((?:::)?[\w:]+)", re.M)
_RUST_TYPE = re.compile(r"^[ \t]*(?:pub(?:\([^)]*\))?\s+)?(struct|enum|trait)\s+(\w+)", re.M)
_RUST_FN = re.compile(
    r"^[ \t]*(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(async\s+)?(?:unsafe\s+)?(?:extern\s+\"[^\"]*\"\s+)?"
    r"fn\s+(\w+)\s*(?:<[^>(]*>)?\s*(\([^)]*\))(\s*->\s*[^{;\n]+)?",
    re.M,
)
_RUST_IMPL = re.compile(
    r"^[ \t]*impl(?:<[^>{]*>)?\s+(?:([\w:]+)(?:<[^>{]*>)?\s+for\s+)?([\w:]+)(?:<[^>{]*>)?[^{]*\{",
    re.M,
)


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _strip_generics(name: str) -> str:
    return re.sub(r"<.*", "", name).strip()


def _split_bases(*groups: Optional[str]) -> List[str]:
    bases: List[str] = []
    for group in groups:
        if not group:
            continue
        # Drop generic arguments before splitting on commas.
        flattened = re.sub(r"<[^<>]*>", "", re.sub(r"<[^<>]*>", "", group))
        bases.extend(_strip_generics(part) for part in flattened.split(",") if part.strip())
    return bases


class _Extraction:
    """Shared state for one file: original text, masked text, depths, lines."""

    def __init__(self, text: str, language: str) -> None:
        self.text = text
        self.masked = mask_text(text, language)
        self.depths = _depths(self.masked)
        self.lines = text.splitlines()

    def depth_at(self, offset: int) -> int:
        return self.depths[offset]

    def original(self, start: int, end: int) -> str:
        return self.text[start:end]

    def line(self, offset: int) -> int:
        return _line_of(self.text, offset)

    def doc(self, offset: int) -> Optional[str]:
        return _leading_comment(self.lines, self.line(offset))

    def symbol(self, match: "re.Match[str]", name_group: int, params_group: int, *, kind: str, is_async: bool = False) -> Symbol:
        start = match.start(name_group)
        params = _squash(self.original(match.start(params_group), match.end(params_group)))
        return Symbol(
            name=match.group(name_group),
            kind=kind,
            signature=params,
            docstring=self.doc(start),
            line=self.line(start),
            is_async=is_async,
        )


def _unique(items: List[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


# ---------------------------------------------------------------------------
# Per-language extractors
# ---------------------------------------------------------------------------


def _extract_js(ex: _Extraction, module: ModuleInfo) -> None:
    # Matched on masked text, so the specifier is read back from the original.
    module.imports = _unique(
        [ex.original(m.start(1), m.end(1)) for pattern in _JS_IMPORTS for m in pattern.finditer(ex.masked)]
    )

    class_patterns: List[Tuple[Pattern[str], str]] = [(_JS_CLASS, "class")]
    if module.language == "TypeScript":
        class_patterns.append((_TS_INTERFACE, "interface"))

    for pattern, kind in class_patterns:
        for match in pattern.finditer(ex.masked):
            if ex.depth_at(match.start()) != 0:
                continue
            open_index = match.end() - 1
            body_end = _block_end(ex.masked, open_index)
            methods: List[Symbol] = []
            if kind == "class":
                for method in _JS_METHOD.finditer(ex.masked, open_index + 1, body_end):
                    name = method.group(2)
                    if name in _CONTROL_WORDS or ex.depth_at(method.start()) != 1:
                        continue
                    methods.append(ex.symbol(method, 2, 3, kind="method", is_async=bool(method.group(1))))
            bases = _split_bases(match.group(2), match.group(3) if kind == "class" else None)
            module.classes.append(
                ClassInfo(
                    name=match.group(1),
                    bases=bases,
                    docstring=ex.doc(match.start(1)),
                    methods=methods,
                    line=ex.line(match.start(1)),
                    kind=kind,
                )
            )

    for match in _JS_FUNCTION.finditer(ex.masked):
        if ex.depth_at(match.start()) == 0:
            module.functions.append(ex.symbol(match, 2, 3, kind="function", is_async=bool(match.group(1))))

    for match in _JS_ARROW.finditer(ex.masked):
        if ex.depth_at(match.start()) != 0:
            continue
        params = match.group(3)
        symbol = ex.symbol(match, 1, 3, kind="function", is_async=bool(match.group(2)))
        if not params.startswith("("):
            symbol.signature = f"({params})"
        module.functions.append(symbol)

    module.functions.sort(key=lambda s: s.line)
    module.classes.sort(key=lambda c: c.line)


def _extract_go(ex: _Extraction, module: ModuleInfo) -> None:
    imports = [ex.original(m.start(1), m.end(1)) for m in _GO_IMPORT_SINGLE.finditer(ex.masked)]
    for block in _GO_IMPORT_BLOCK.finditer(ex.masked):
        for spec in _GO_IMPORT_PATH.finditer(ex.masked, block.start(1), block.end(1)):
            imports.append(ex.original(spec.start(1), spec.end(1)))
    module.imports = _unique(imports)

    types: Dict[str, ClassInfo] = {}
    for match in _GO_TYPE.finditer(ex.masked):
        info = ClassInfo(
            name=match.group(1),
            docstring=ex.doc(match.start()),
            line=ex.line(match.start()),
            kind=match.group(2),
        )
        types[info.name] = info
        module.classes.append(info)

    for match in _GO_FUNC.finditer(ex.masked):
        receiver = match.group(1)
        if receiver and receiver in types:
            types[receiver].methods.append(ex.symbol(match, 2, 3, kind="method"))
        else:
            module.functions.append(ex.symbol(match, 2, 3, kind="function"))


def _extract_java(ex: _Extraction, module: ModuleInfo) -> None:
    module.imports = _unique([m.group(1) for m in _JAVA_IMPORT.finditer(ex.masked)])

    for match in _JAVA_TYPE.finditer(ex.masked):
        if ex.depth_at(match.start()) != 0:
            continue
        name = match.group(2)
        open_index = match.end() - 1
        body_end = _block_end(ex.masked, open_index)

        methods: List[Symbol] = []
        for pattern in (_JAVA_CONSTRUCTOR, _JAVA_METHOD):
            for method in pattern.finditer(ex.masked, open_index + 1, body_end):
                method_name = method.group(1)
                if method_name in _CONTROL_WORDS or ex.depth_at(method.start()) != 1:
                    continue
                if pattern is _JAVA_CONSTRUCTOR and method_name != name:
                    continue
                if any(existing.line == ex.line(method.start(1)) for existing in methods):
                    continue
                methods.append(ex.symbol(method, 1, 2, kind="method"))
        methods.sort(key=lambda s: s.line)

        module.classes.append(
            ClassInfo(
                name=name,
                bases=_split_bases(match.group(3), match.group(4)),
                docstring=ex.doc(match.start(2)),
                methods=methods,
                line=ex.line(match.start(2)),
                kind=match.group(1),
            )
        )


def _extract_rust(ex: _Extraction, module: ModuleInfo) -> None:
    module.imports = _unique([m.group(1) for m in _RUST_USE.finditer(ex.masked)])

    types: Dict[str, ClassInfo] = {}
    for match in _RUST_TYPE.finditer(ex.masked):
        if ex.depth_at(match.start()) != 0:
            continue
        info = ClassInfo(
            name=match.group(2),
            docstring=ex.doc(match.start()),
            line=ex.line(match.start()),
            kind=match.group(1),
        )
        types[info.name] = info
        module.classes.append(info)

    impl_ranges: List[Tuple[int, int, str]] = []
    for match in _RUST_IMPL.finditer(ex.masked):
        if ex.depth_at(match.start()) != 0:
            continue
        trait, target = match.group(1), match.group(2).split("::")[-1]
        impl_ranges.append((match.end() - 1, _block_end(ex.masked, match.end() - 1), target))
        if trait and target in types:
            trait_name = trait.split("::")[-1]
            if trait_name not in types[target].bases:
                types[target].bases.append(trait_name)

    for match in _RUST_FN.finditer(ex.masked):
        depth = ex.depth_at(match.start())
        symbol = ex.symbol(match, 2, 3, kind="function", is_async=bool(match.group(1)))
        if match.group(4):
            symbol.signature += " -> " + _squash(match.group(4)).lstrip("-> ").strip()

        if depth == 0:
            module.functions.append(symbol)
            continue

        owner = next(
            (target for start, end, target in impl_ranges if start < match.start() < end),
            None,
        )
        if owner is not None and depth == 1 and owner in types:
            symbol.kind = "method"
            types[owner].methods.append(symbol)


_EXTRACTORS: Dict[str, Callable[[_Extraction, ModuleInfo], None]] = {
    "JavaScript": _extract_js,
    "TypeScript": _extract_js,
    "Go": _extract_go,
    "Java": _extract_java,
    "Rust": _extract_rust,
}

SUPPORTED_LANGUAGES = tuple(_EXTRACTORS)


def extract(text: str, *, language: str, name: str, path: str) -> ModuleInfo:
    """Extract a :class:`ModuleInfo` from brace-language source text.

    Unsupported languages yield a module with no symbols and an entry in
    ``errors``.
    """
    module = ModuleInfo(name=name, path=path, language=language)
    extractor = _EXTRACTORS.get(language)
    if extractor is None:
        module.errors.append(f"No extractor for language {language}")
        return module

    ex = _Extraction(text, language)
    module.docstring = _header_comment(ex.lines)
    extractor(ex, module)
    return module
