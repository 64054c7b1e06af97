"""Static analysis of source files.

Turns a :class:`SourceFile` into a :class:`ModuleInfo`: imports, classes,
functions, constants and docstrings. Python is analysed with the standard
:mod:`ast` module; JavaScript, TypeScript, Go, Java and Rust go through
the pattern-based extractors in :mod:`docweaver.core.lexical`.

Analysis never raises for malformed source. Problems are recorded on
``ModuleInfo.errors`` so one broken file cannot stop a documentation run.

Typical usage::

    from docweaver.core.analyzer import analyze_source

    module = analyze_source(source)
    print(module.name, [c.name for c in module.classes])
"""

from __future__ import annotations

import re
import ast
from pathlib import PurePosixPath
from typing import List, Optional, Sequence, Set, Union

from docweaver.core import lexical
from docweaver.utils.logger import get_logger
from docweaver.models import ClassInfo, ModuleInfo, SourceFile, Symbol

logger = get_logger("analyzer")

__all__ = ["analyze_source", "analyze_python", "assign_unique_names", "module_name_for"]

_CONSTANT_NAME = re.compile(r"^_?[A-Z][A-Z0-9_]*$")

_FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def module_name_for(path: str, language: str) -> str:
    """Derive a module name from a relative POSIX path.

    Python files get dotted names with a leading ``src/`` dropped and
    ``__init__`` collapsed onto the package; other languages keep the path
    without its extension.

    Example::

        >>> module_name_for("src/pkg/sub/__init__.py", "Python")
        'pkg.sub'
        >>> module_name_for("web/app/routes.ts", "TypeScript")
        'web/app/routes'
    """
    pure = PurePosixPath(path)
    without_suffix = pure.with_suffix("")

    if language != "Python":
        return without_suffix.as_posix()

    parts = list(without_suffix.parts)
    if len(parts) > 1 and parts[0] == "src":
        parts = parts[1:]
    if len(parts) > 1 and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def analyze_source(source: SourceFile) -> ModuleInfo:
    """Analyse ``source`` according to its language."""
    name = module_name_for(source.path, source.language)

    if source.language == "Python":
        module = analyze_python(source.content, name=name, path=source.path)
    else:
        module = lexical.extract(source.content, language=source.language, name=name, path=source.path)

    module.line_count = source.line_count
    module.digest = source.digest
    logger.debug(
        "Analysed %s: %d class(es), %d function(s), %d import(s)",
        source.path,
        len(module.classes),
        len(module.functions),
        len(module.imports),
    )
    return module


def assign_unique_names(modules: Sequence[ModuleInfo]) -> List[ModuleInfo]:
    """Make module names unique across a repository, in path order.

    Two files can map to the same name (``web/api.ts`` and ``web/api.js``,
    or ``app/util.py`` and ``src/app/util.py``). The first path keeps the
    name; later files are renamed to their path. Names also stay distinct
    once "/" is read as "." (``a/b`` and ``a.b`` clash), since pages are
    named that way. Modules are renamed in place and returned sorted by
    path.
    """
    taken: Set[str] = set()
    ordered = sorted(modules, key=lambda m: m.path)
    for module in ordered:
        if _flat(module.name) in taken:
            renamed = module.path
            counter = 2
            while _flat(renamed) in taken:
                renamed = f"{module.path}~{counter}"
                counter += 1
            logger.warning(
                "Module name %s is shared by several files; documenting %s as %s",
                module.name,
                module.path,
                renamed,
            )
            module.name = renamed
        taken.add(_flat(module.name))
    return ordered


def _flat(name: str) -> str:
    return name.replace("/", ".")


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------


def analyze_python(content: str, *, name: str, path: str) -> ModuleInfo:
    """Analyse Python source text with :mod:`ast`.

    Args:
        content: Source text.
        name: Dotted module name, used to resolve relative imports.
        path: Relative path, recorded on the result.

    Returns:
        The populated :class:`ModuleInfo`. On ``SyntaxError`` the module
        carries no symbols and the error is listed in ``errors``.
    """
    module = ModuleInfo(name=name, path=path, language="Python")

    try:
        tree = ast.parse(content, filename=path)
    except (SyntaxError, ValueError) as exc:
        lineno = getattr(exc, "lineno", None)
        message = getattr(exc, "msg", None) or str(exc)
        location = f" (line {lineno})" if lineno else ""
        module.errors.append(f"SyntaxError: {message}{location}")
        logger.warning("Could not parse %s: %s%s", path, message, location)
        return module

    module.docstring = ast.get_docstring(tree)
    module.imports = _python_imports(tree, name, is_package=PurePosixPath(path).stem == "__init__")

    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            module.classes.append(_python_class(node))
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            module.functions.append(_python_function(node, kind="function"))
        elif isinstance(node, (ast.Assign, ast.AnnAssign)):
            module.constants.extend(_python_constants(node))

    return module


def _python_imports(tree: ast.Module, module_name: str, *, is_package: bool) -> List[str]:
    package_parts = module_name.split(".") if is_package else module_name.split(".")[:-1]
    seen: List[str] = []

    def add(target: str) -> None:
        if target and target not in seen:
            seen.append(target)

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                add(alias.name)
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0:
                add(node.module or "")
                continue

            base = _resolve_relative(package_parts, node.level)
            if base is None:
                logger.debug(
                    "Relative import beyond top-level package in %s", module_name
                )
                continue
            if node.module:
                add(".".join(base + [node.module]))
            else:
                for alias in node.names:
                    add(".".join(base + [alias.name]))

    return seen


def _resolve_relative(package_parts: Sequence[str], level: int) -> Optional[List[str]]:
    climb = level - 1
    if climb > len(package_parts):
        return None
    return list(package_parts[: len(package_parts) - climb])


def _python_class(node: ast.ClassDef) -> ClassInfo:
    methods = [
        _python_function(child, kind="method")
        for child in node.body
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef))
        and not _is_hidden_dunder(child.name)
    ]
    return ClassInfo(
        name=node.name,
        bases=[ast.unparse(base) for base in node.bases],
        docstring=ast.get_docstring(node),
        methods=methods,
        line=node.lineno,
    )


def _python_function(node: _FunctionNode, *, kind: str) -> Symbol:
    signature = _format_arguments(node.args)
    if node.returns is not None:
        signature += f" -> {ast.unparse(node.returns)}"

    return Symbol(
        name=node.name,
        kind=kind,
        signature=signature,
        docstring=ast.get_docstring(node),
        line=node.lineno,
        is_async=isinstance(node, ast.AsyncFunctionDef),
    )


def _python_constants(node: Union[ast.Assign, ast.AnnAssign]) -> List[str]:
    targets = node.targets if isinstance(node, ast.Assign) else [node.target]
    return [
        target.id
        for target in targets
        if isinstance(target, ast.Name) and _CONSTANT_NAME.match(target.id)
    ]


def _is_hidden_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__") and name != "__init__"


def _format_arguments(args: ast.arguments) -> str:
    """Render an ``ast.arguments`` node back into a parameter list."""
    parts: List[str] = []

    positional = list(args.posonlyargs) + list(args.args)
    padding: List[Optional[ast.expr]] = [None] * (len(positional) - len(args.defaults))
    defaults = padding + list(args.defaults)

    for index, (arg, default) in enumerate(zip(positional, defaults)):
        parts.append(_format_arg(arg, default))
        if args.posonlyargs and index == len(args.posonlyargs) - 1:
            parts.append("/")

    if args.vararg is not None:
        parts.append("*" + _format_arg(args.vararg))
    elif args.kwonlyargs:
        parts.append("*")

    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        parts.append(_format_arg(arg, default))

    if args.kwarg is not None:
        parts.append("**" + _format_arg(args.kwarg))

    return "(" + ", ".join(parts) + ")"


def _format_arg(arg: ast.arg, default: Optional[ast.expr] = None) -> str:
    text = arg.arg
    if arg.annotation is not None:
        text += f": {ast.unparse(arg.annotation)}"
    if default is not None:
        separator = " = " if arg.annotation is not None else "="
        text += separator + ast.unparse(default)
    return text
