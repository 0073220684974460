"""Syntax checks for code samples embedded in guides."""

import ast
import json
import xml.etree.ElementTree as ET
from html.parser import HTMLParser

import yaml

LANGUAGE_ALIASES = {
    "js": "javascript",
    "mjs": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "kt": "kotlin",
    "kts": "kotlin",
    "objc": "objective-c",
    "objectivec": "objective-c",
    "obj-c": "objective-c",
    "yml": "yaml",
    "py": "python",
    "python3": "python",
    "htm": "html",
    "xhtml": "html",
}

DELIMITED_LANGUAGES = frozenset(
    {
        "kotlin",
        "java",
        "swift",
        "objective-c",
        "dart",
        "javascript",
        "typescript",
        "jsx",
        "tsx",
        "css",
        "scss",
        "groovy",
        "c",
        "cpp",
    }
)

# Languages whose strings may span lines when written with three quotes.
TRIPLE_QUOTE_LANGUAGES = frozenset({"kotlin", "swift", "dart", "groovy", "java"})

TEMPLATE_LITERAL_LANGUAGES = frozenset({"javascript", "typescript", "jsx", "tsx"})

HTML_VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# End tags that HTML allows authors to omit.
HTML_OPTIONAL_END_ELEMENTS = frozenset({"li", "p", "td", "th", "tr", "dt", "dd", "option", "thead", "tbody", "tfoot"})

XML_WRAPPER_NAMESPACES = {
    "android": "http://schemas.android.com/apk/res/android",
    "app": "http://schemas.android.com/apk/res-auto",
    "tools": "http://schemas.android.com/tools",
}

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")": "(", "]": "[", "}": "{"}


def normalise_language(language: str | None) -> str | None:
    """Normalise a fenced code block language tag.

    Args:
        language: Raw info string language, may be None.

    Returns:
        Canonical lowercase language name or None.
    """
    if not language:
        return None
    name = language.strip().lower()
    return LANGUAGE_ALIASES.get(name, name)


def is_checkable(language: str | None) -> bool:
    """Return True if samples in this language can be syntax checked."""
    name = normalise_language(language)
    return name in {"json", "python", "yaml", "xml", "html"} or name in DELIMITED_LANGUAGES


def check_code_sample(language: str | None, code: str) -> list[str]:
    """Check a code sample for syntax problems.

    Args:
        language: Language tag of the sample.
        code: Sample source.

    Returns:
        Human-readable problems, empty when the sample is valid or the
        language cannot be checked.
    """
    name = normalise_language(language)
    if name is None or not code.strip():
        return []
    if name == "json":
        return _check_json(code)
    if name == "python":
        return _check_python(code)
    if name == "yaml":
        return _check_yaml(code)
    if name == "xml":
        return _check_xml(code)
    if name == "html":
        return _check_html(code)
    if name in DELIMITED_LANGUAGES:
        return _check_delimiters(code, name)
    return []


def _check_json(code: str) -> list[str]:
    try:
        json.loads(code)
    except json.JSONDecodeError as exc:
        return [f"invalid JSON at line {exc.lineno}: {exc.msg}"]
    return []


def _check_python(code: str) -> list[str]:
    try:
        ast.parse(code)
    except SyntaxError as exc:
        return [f"invalid Python at line {exc.lineno}: {exc.msg}"]
    return []


def _check_yaml(code: str) -> list[str]:
    try:
        for _ in yaml.safe_load_all(code):
            pass
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" at line {mark.line + 1}" if mark is not None else ""
        problem = getattr(exc, "problem", None) or str(exc)
        return [f"invalid YAML{where}: {problem}"]
    return []


def _check_xml(code: str) -> list[str]:
    # Strip the prolog so fragments can be wrapped in a synthetic root.
    body = code.strip()
    if body.startswith("<?xml"):
        end = body.find("?>")
        body = body[end + 2 :] if end != -1 else body
    declarations = " ".join(f'xmlns:{prefix}="{uri}"' for prefix, uri in XML_WRAPPER_NAMESPACES.items())
    wrapped = f"<fragment {declarations}>{body}</fragment>"
    try:
        ET.fromstring(wrapped)  # noqa: S314
    except ET.ParseError as exc:
        line = exc.position[0]
        return [f"invalid XML at line {line}: {exc}"]
    return []


class _TagBalanceParser(HTMLParser):
    """Tracks open HTML elements and records mismatched end tags."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.stack: list[tuple[str, int]] = []
        self.problems: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag not in HTML_VOID_ELEMENTS:
            self.stack.append((tag, self.getpos()[0]))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        pass

    def handle_endtag(self, tag: str) -> None:
        if tag in HTML_VOID_ELEMENTS:
            return
        line = self.getpos()[0]
        if not self.stack:
            self.problems.append(f"unexpected </{tag}> at line {line}")
            return
        if self.stack[-1][0] == tag:
            self.stack.pop()
        elif any(name == tag for name, _ in self.stack):
            while self.stack and self.stack[-1][0] != tag:
                name, opened_at = self.stack.pop()
                if name not in HTML_OPTIONAL_END_ELEMENTS:
                    self.problems.append(f"<{name}> opened at line {opened_at} is closed by </{tag}> at line {line}")
            self.stack.pop()
        else:
            self.problems.append(f"unexpected </{tag}> at line {line}")


def _check_html(code: str) -> list[str]:
    parser = _TagBalanceParser()
    parser.feed(code)
    parser.close()
    problems = list(parser.problems)
    for tag, line in parser.stack:
        if tag in HTML_OPTIONAL_END_ELEMENTS:
            continue
        problems.append(f"<{tag}> opened at line {line} is never closed")
    return problems


def _check_delimiters(code: str, language: str) -> list[str]:
    """Check bracket balance, skipping comments and string literals."""
    stack: list[tuple[str, int]] = []
    problems: list[str] = []
    line = 1
    i = 0
    length = len(code)
    line_comments = ("//",) if language not in {"css"} else ()

    while i < length:
        char = code[i]

        if char == "\n":
            line += 1
            i += 1
            continue

        if any(code.startswith(marker, i) for marker in line_comments):
            end = code.find("\n", i)
            i = length if end == -1 else end
            continue

        if code.startswith("/*", i):
            end = code.find("*/", i + 2)
            if end == -1:
                problems.append(f"unterminated block comment at line {line}")
                break
            line += code.count("\n", i, end)
            i = end + 2
            continue

        if language in TRIPLE_QUOTE_LANGUAGES and code.startswith('"""', i):
            end = code.find('"""', i + 3)
            if end == -1:
                problems.append(f"unterminated multi-line string at line {line}")
                break
            line += code.count("\n", i, end)
            i = end + 3
            continue

        if language in TEMPLATE_LITERAL_LANGUAGES and char == "`":
            end = _find_closing_quote(code, i + 1, "`", multiline=True)
            if end == -1:
                problems.append(f"unterminated template literal at line {line}")
                break
            line += code.count("\n", i, end)
            i = end + 1
            continue

        if char in {'"', "'"}:
            end = _find_closing_quote(code, i + 1, char, multiline=False)
            # An unclosed quote on a single line is prose, e.g. JSX text.
            i = i + 1 if end == -1 else end + 1
            continue

        if char in _OPENERS:
            stack.append((char, line))
        elif char in _CLOSERS:
            if not stack:
                problems.append(f"unexpected '{char}' at line {line}")
            elif stack[-1][0] != _CLOSERS[char]:
                opener, opened_at = stack.pop()
                problems.append(f"'{opener}' opened at line {opened_at} is closed by '{char}' at line {line}")
            else:
                stack.pop()
        i += 1

    for opener, opened_at in stack:
        problems.append(f"'{opener}' opened at line {opened_at} is never closed")
    return problems


def _find_closing_quote(code: str, start: int, quote: str, multiline: bool) -> int:
    """Return the index of the closing quote or -1."""
    i = start
    while i < len(code):
        char = code[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i
        if char == "\n" and not multiline:
            return -1
        i += 1
    return -1
