"""Parser for WCAG accessibility guide documents (Markdown and RST)."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import docutils.core  # type: ignore[import-untyped]
import docutils.nodes  # type: ignore[import-untyped]
from markdown_it import MarkdownIt
from markdown_it.token import Token

from mcp_wcag_documentation.code_checks import normalise_language
from mcp_wcag_documentation.models import (
    CodeSample,
    ConformanceLevel,
    CriterionEntry,
    CriterionReference,
    Document,
    DocumentMetadata,
    Heading,
    Link,
    Platform,
    SeverityLabel,
)
from mcp_wcag_documentation.wcag import find_criterion, iter_criterion_ids

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")
RST_SUFFIXES = (".rst", ".rest")
GUIDE_SUFFIXES = MARKDOWN_SUFFIXES + RST_SUFFIXES

# A level stated right after a criterion number or its title, e.g.
# "2.5.8 Target Size (Minimum) - Level AA" or "1.4.3 (AA)".
STATED_LEVEL_PATTERN = re.compile(r"^[^.;\n]{0,80}?(?:\bLevel\s+(AAA|AA|A)\b|\((?:Level\s+)?(AAA|AA|A)\))")

SEVERITY_LABEL_PATTERN = re.compile(r"\bSeverity\s*\**\s*:\s*\**\s*([A-Za-z]+)")

VIOLATIONS_PATTERN = re.compile(
    r"\b(violations?|failures?|anti-?patterns?|common (?:issues|mistakes|problems))\b",
    re.IGNORECASE,
)

PLATFORM_PATTERNS: tuple[tuple[Platform, re.Pattern[str]], ...] = (
    (Platform.REACT_NATIVE, re.compile(r"\breact[\s-]native\b", re.IGNORECASE)),
    (Platform.FLUTTER, re.compile(r"\bflutter\b", re.IGNORECASE)),
    (Platform.ANDROID, re.compile(r"\b(android|jetpack compose)\b", re.IGNORECASE)),
    (Platform.IOS, re.compile(r"\b(ios|swiftui|uikit)\b", re.IGNORECASE)),
    (Platform.WEB, re.compile(r"\b(web|html)\b", re.IGNORECASE)),
)

LANGUAGE_PLATFORMS = {
    "kotlin": Platform.ANDROID,
    "java": Platform.ANDROID,
    "xml": Platform.ANDROID,
    "swift": Platform.IOS,
    "objective-c": Platform.IOS,
    "dart": Platform.FLUTTER,
    "html": Platform.WEB,
    "css": Platform.WEB,
    "javascript": Platform.WEB,
    "typescript": Platform.WEB,
}


@dataclass
class Block:
    """A structural block of a guide: heading, paragraph, list item, table cell or code."""

    kind: str
    text: str
    line: int
    level: int = 0
    language: str | None = None
    anchor: str | None = None


def slugify_heading(text: str) -> str:
    """Compute the GitHub-style anchor for a heading.

    Args:
        text: Heading text.

    Returns:
        Lowercase anchor with punctuation removed and spaces as hyphens.
    """
    slug = text.strip().lower()
    slug = re.sub(r"[^\w\- ]", "", slug)
    return slug.replace(" ", "-")


def iter_guide_files(docs_path: Path) -> list[Path]:
    """List guide files below a directory in a stable order.

    Args:
        docs_path: Root of the documentation tree.

    Returns:
        Sorted list of Markdown and RST files.
    """
    return sorted(p for p in docs_path.rglob("*") if p.is_file() and p.suffix.lower() in GUIDE_SUFFIXES)


def detect_platform(text: str) -> Platform | None:
    """Return the platform named in a piece of text, if any."""
    for platform, pattern in PLATFORM_PATTERNS:
        if pattern.search(text):
            return platform
    return None


def stated_level(text: str) -> ConformanceLevel | None:
    """Return the conformance level stated at the start of ``text``, if any."""
    match = STATED_LEVEL_PATTERN.search(text)
    if match is None:
        return None
    return ConformanceLevel(match.group(1) or match.group(2))


class BlockVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor to flatten an RST document tree into guide blocks and links."""

    def __init__(self, document: docutils.nodes.document, source_lines: list[str] | None = None) -> None:
        """Initialise block visitor.

        Args:
            document: Docutils document tree.
            source_lines: Source text lines, used to place titles on their text line.
        """
        super().__init__(document)
        self.blocks: list[Block] = []
        self.links: list[Link] = []
        self._source_lines = source_lines or []
        self._section_depth = 0
        self._list_depth = 0
        self._cell_depth = 0
        self._last_line = 1
        # Heading levels taken by a promoted document title and subtitle.
        self._title_levels = 0

    def _line_of(self, node: docutils.nodes.Node) -> int:
        line = getattr(node, "line", None)
        if line:
            self._last_line = line
        return self._last_line

    def _title_line(self, node: docutils.nodes.Element) -> int:
        # docutils reports the underline, so look back for the title text.
        line = self._line_of(node)
        text = (node.rawsource or node.astext()).strip()
        for candidate in (line, line - 1, line - 2, line + 1, line + 2, line + 3):
            if 1 <= candidate <= len(self._source_lines) and self._source_lines[candidate - 1].strip() == text:
                return candidate
        return line

    def _add_heading(self, node: docutils.nodes.Element, level: int) -> None:
        text = node.astext()
        ids = node.parent.get("ids") if isinstance(node, docutils.nodes.title) else node.get("ids")
        self.blocks.append(
            Block(
                kind="heading",
                text=text,
                line=self._title_line(node),
                level=level,
                anchor=(ids or [slugify_heading(text)])[0],
            )
        )

    def visit_section(self, node: docutils.nodes.section) -> None:
        """Enter a section.

        Args:
            node: Section node.
        """
        self._section_depth += 1

    def depart_section(self, node: docutils.nodes.section) -> None:
        """Leave a section.

        Args:
            node: Section node.
        """
        self._section_depth -= 1

    def visit_title(self, node: docutils.nodes.title) -> None:
        """Record document and section titles as headings.

        A title promoted to the document is level 1 and pushes every section
        below it down one level.

        Args:
            node: Title node.

        Raises:
            docutils.nodes.SkipNode: Always raised, titles are recorded whole.
        """
        if isinstance(node.parent, docutils.nodes.document):
            self._title_levels = 1
            self._add_heading(node, 1)
        elif isinstance(node.parent, docutils.nodes.section):
            self._add_heading(node, self._section_depth + self._title_levels)
        raise docutils.nodes.SkipNode

    def visit_subtitle(self, node: docutils.nodes.subtitle) -> None:
        """Record a promoted document subtitle as a level-2 heading.

        Args:
            node: Subtitle node.

        Raises:
            docutils.nodes.SkipNode: Always raised, subtitles are recorded whole.
        """
        if isinstance(node.parent, docutils.nodes.document):
            self._title_levels = 2
            self._add_heading(node, 2)
        raise docutils.nodes.SkipNode

    def visit_list_item(self, node: docutils.nodes.list_item) -> None:
        """Enter a list item.

        Args:
            node: List item node.
        """
        self._list_depth += 1

    def depart_list_item(self, node: docutils.nodes.list_item) -> None:
        """Leave a list item.

        Args:
            node: List item node.
        """
        self._list_depth -= 1

    def visit_entry(self, node: docutils.nodes.entry) -> None:
        """Enter a table cell.

        Args:
            node: Table entry node.
        """
        self._cell_depth += 1

    def depart_entry(self, node: docutils.nodes.entry) -> None:
        """Leave a table cell.

        Args:
            node: Table entry node.
        """
        self._cell_depth -= 1

    def visit_paragraph(self, node: docutils.nodes.paragraph) -> None:
        """Record a paragraph, list item or table cell text.

        Args:
            node: Paragraph node.
        """
        if self._cell_depth:
            kind = "cell"
        elif self._list_depth:
            kind = "item"
        else:
            kind = "paragraph"
        self.blocks.append(Block(kind=kind, text=node.astext(), line=self._line_of(node)))

    def visit_literal_block(self, node: docutils.nodes.literal_block) -> None:
        """Record code blocks.

        Args:
            node: Literal block node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip code contents.
        """
        languages = [name for name in node.get("classes", []) if name != "code"]
        self.blocks.append(
            Block(
                kind="code",
                text=node.astext(),
                line=self._line_of(node),
                language=languages[0].lower() if languages else None,
            )
        )
        raise docutils.nodes.SkipNode

    def visit_reference(self, node: docutils.nodes.reference) -> None:
        """Record hyperlink targets.

        Args:
            node: Reference node.
        """
        target = node.get("refuri")
        if target:
            self.links.append(Link(target=target, text=node.astext(), line=self._line_of(node)))

    def visit_image(self, node: docutils.nodes.image) -> None:
        """Record image sources as link targets.

        Args:
            node: Image node.
        """
        uri = node.get("uri")
        if uri:
            self.links.append(Link(target=uri, text=node.get("alt", ""), line=self._line_of(node)))

    def visit_comment(self, node: docutils.nodes.comment) -> None:
        """Skip comments.

        Args:
            node: Comment node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip comments.
        """
        raise docutils.nodes.SkipNode

    def visit_system_message(self, node: docutils.nodes.system_message) -> None:
        """Skip parser diagnostics.

        Args:
            node: System message node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip diagnostics.
        """
        raise docutils.nodes.SkipNode

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op).

        Args:
            node: Any node.
        """

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op).

        Args:
            node: Any node.
        """


class DocumentParser:
    """Parses Markdown and RST guide files into structured documents."""

    def __init__(self, base_url: str | None = None) -> None:
        """Initialise parser.

        Args:
            base_url: Optional base URL that document paths are appended to.
        """
        self.base_url = base_url.rstrip("/") if base_url else None
        self._markdown = MarkdownIt("commonmark").enable("table")

    def parse_file(self, file_path: Path, base_path: Path) -> Document | None:
        """Parse a guide file and extract metadata, structure and content.

        Args:
            file_path: Path to the guide file.
            base_path: Base path of the documentation directory.

        Returns:
            Document instance or None if parsing fails.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
            if file_path.suffix.lower() in RST_SUFFIXES:
                blocks, links = self._parse_rst(source, file_path)
            else:
                blocks, links = self._parse_markdown(source)
            relative_path = file_path.relative_to(base_path)
            return self._build_document(blocks, links, relative_path, file_path)
        except Exception:
            logger.debug("Could not parse %s", file_path, exc_info=True)
            return None

    def parse_text(self, source: str, relative_path: str) -> Document:
        """Parse guide source held in memory.

        Args:
            source: Guide text.
            relative_path: Path the text would have inside the corpus.

        Returns:
            Document instance.
        """
        path = Path(relative_path)
        if path.suffix.lower() in RST_SUFFIXES:
            blocks, links = self._parse_rst(source, path)
        else:
            blocks, links = self._parse_markdown(source)
        return self._build_document(blocks, links, path, path)

    def _parse_markdown(self, source: str) -> tuple[list[Block], list[Link]]:
        """Flatten Markdown tokens into blocks and links.

        Args:
            source: Markdown source text.

        Returns:
            Tuple of blocks and links in document order.
        """
        blocks: list[Block] = []
        links: list[Link] = []
        heading_level = 0
        list_depth = 0
        cell_depth = 0
        last_line = 1

        for token in self._markdown.parse(source):
            if token.map:
                last_line = token.map[0] + 1

            if token.type == "heading_open":
                heading_level = int(token.tag[1:])
            elif token.type == "heading_close":
                heading_level = 0
            elif token.type == "list_item_open":
                list_depth += 1
            elif token.type == "list_item_close":
                list_depth -= 1
            elif token.type in ("th_open", "td_open"):
                cell_depth += 1
            elif token.type in ("th_close", "td_close"):
                cell_depth -= 1
            elif token.type == "inline":
                links.extend(self._inline_links(token, last_line))
                if heading_level:
                    kind = "heading"
                elif cell_depth:
                    kind = "cell"
                elif list_depth:
                    kind = "item"
                else:
                    kind = "paragraph"
                blocks.append(Block(kind=kind, text=self._inline_text(token), line=last_line, level=heading_level))
            elif token.type in ("fence", "code_block"):
                info = token.info.strip().split()
                blocks.append(
                    Block(kind="code", text=token.content, line=last_line, language=info[0].lower() if info else None)
                )

        return blocks, links

    @staticmethod
    def _inline_text(token: Token) -> str:
        """Render an inline token as plain text, keeping soft line breaks.

        Args:
            token: Inline token.

        Returns:
            Plain text content.
        """
        parts: list[str] = []
        for child in token.children or []:
            if child.type in ("text", "code_inline"):
                parts.append(child.content)
            elif child.type in ("softbreak", "hardbreak"):
                parts.append("\n")
            elif child.type == "image":
                parts.append(child.content)
        return "".join(parts)

    @staticmethod
    def _inline_links(token: Token, line: int) -> list[Link]:
        """Collect link and image targets from an inline token.

        Args:
            token: Inline token.
            line: Line number where the inline block starts.

        Returns:
            Links with line numbers adjusted for soft breaks.
        """
        links: list[Link] = []
        open_link: tuple[str, int] | None = None
        link_text: list[str] = []
        offset = 0

        for child in token.children or []:
            if child.type in ("softbreak", "hardbreak"):
                offset += 1
            elif child.type == "link_open":
                href = child.attrGet("href")
                open_link = (str(href), line + offset) if href is not None else None
                link_text = []
            elif child.type == "link_close":
                if open_link is not None:
                    links.append(Link(target=open_link[0], text="".join(link_text), line=open_link[1]))
                open_link = None
            elif child.type == "image":
                src = child.attrGet("src")
                if src is not None:
                    links.append(Link(target=str(src), text=child.content, line=line + offset))
            elif child.type in ("text", "code_inline") and open_link is not None:
                link_text.append(child.content)

        return links

    def _parse_rst(self, source: str, file_path: Path) -> tuple[list[Block], list[Link]]:
        """Parse RST source and flatten it into blocks and links.

        The standard transforms run, so the document title is promoted and
        named hyperlink references resolve to their targets.

        Args:
            source: RST source text.
            file_path: Path to the file (for error reporting).

        Returns:
            Tuple of blocks and links in document order.
        """
        document = docutils.core.publish_doctree(
            source,
            source_path=str(file_path),
            settings_overrides={
                "report_level": 5,  # Suppress warnings
                "halt_level": 5,
                "file_insertion_enabled": False,
                "raw_enabled": False,
                "_disable_config": True,
            },
        )
        visitor = BlockVisitor(document, source.splitlines())
        document.walkabout(visitor)
        return visitor.blocks, visitor.links

    def _build_document(self, blocks: list[Block], links: list[Link], relative_path: Path, file_path: Path) -> Document:
        """Assemble a Document from parsed blocks.

        Args:
            blocks: Blocks in document order.
            links: Links in document order.
            relative_path: Path relative to the documentation root.
            file_path: Path to the file for fallback title extraction.

        Returns:
            Document instance.
        """
        headings = self._collect_headings(blocks)
        metadata = self._extract_metadata(blocks, headings, file_path)
        code_samples = self._collect_code_samples(blocks, relative_path.as_posix())
        content = " ".join(block.text for block in blocks if block.kind != "code")
        if relative_path.suffix.lower() in RST_SUFFIXES:
            content = self._clean_rst_content(content)

        return Document(
            path=relative_path.as_posix(),
            title=metadata.title,
            description=metadata.description,
            section=self._extract_section(relative_path),
            content=self._collapse_whitespace(content),
            url=self._compute_url(relative_path),
            headings=headings,
            links=links,
            code_samples=[sample for _, sample in code_samples],
            references=self._collect_references(blocks),
            criteria=self._collect_entries(blocks, dict(code_samples)),
            severity_labels=self._collect_severity_labels(blocks),
        )

    @staticmethod
    def _collect_headings(blocks: list[Block]) -> list[Heading]:
        """Build headings with unique anchors.

        Args:
            blocks: Blocks in document order.

        Returns:
            List of Heading instances.
        """
        headings: list[Heading] = []
        seen: dict[str, int] = {}
        for block in blocks:
            if block.kind != "heading":
                continue
            text = DocumentParser._collapse_whitespace(block.text)
            anchor = block.anchor
            if anchor is None:
                base = slugify_heading(text)
                count = seen.get(base, 0)
                seen[base] = count + 1
                anchor = base if count == 0 else f"{base}-{count}"
            headings.append(Heading(level=block.level, text=text, line=block.line, anchor=anchor))
        return headings

    def _extract_metadata(self, blocks: list[Block], headings: list[Heading], file_path: Path) -> DocumentMetadata:
        """Extract title and description.

        Args:
            blocks: Blocks in document order.
            headings: Headings of the document.
            file_path: Path to the file for fallback title extraction.

        Returns:
            DocumentMetadata instance.
        """
        title = next((h.text for h in headings if h.level == 1), None)
        if title is None and headings:
            title = headings[0].text
        if not title:
            # Fallback to filename if no title found
            title = file_path.stem.replace("-", " ").replace("_", " ").title()

        description = next((b.text for b in blocks if b.kind == "paragraph"), None)
        return DocumentMetadata(
            title=title,
            description=self._collapse_whitespace(description) if description else None,
        )

    @staticmethod
    def _collect_code_samples(blocks: list[Block], path: str) -> list[tuple[int, CodeSample]]:
        """Collect code samples with their inferred platform.

        The nearest enclosing heading that names a platform wins; otherwise
        the platform is inferred from the sample language.

        Args:
            blocks: Blocks in document order.
            path: Relative document path.

        Returns:
            List of (block index, CodeSample) pairs.
        """
        samples: list[tuple[int, CodeSample]] = []
        stack: list[Block] = []
        for index, block in enumerate(blocks):
            if block.kind == "heading":
                while stack and stack[-1].level >= block.level:
                    stack.pop()
                stack.append(block)
                continue
            if block.kind != "code":
                continue
            platform = None
            for heading in reversed(stack):
                platform = detect_platform(heading.text)
                if platform is not None:
                    break
            language = normalise_language(block.language)
            if platform is None and language is not None:
                platform = LANGUAGE_PLATFORMS.get(language)
            samples.append(
                (
                    index,
                    CodeSample(language=block.language, code=block.text, line=block.line, platform=platform, path=path),
                )
            )
        return samples

    @staticmethod
    def _collect_references(blocks: list[Block]) -> list[CriterionReference]:
        """Find every success criterion number cited in prose.

        Args:
            blocks: Blocks in document order.

        Returns:
            List of CriterionReference instances.
        """
        references: list[CriterionReference] = []
        for block in blocks:
            if block.kind == "code":
                continue
            for offset, text in enumerate(block.text.split("\n")):
                for criterion_id, _, end in iter_criterion_ids(text):
                    references.append(
                        CriterionReference(
                            criterion_id=criterion_id,
                            line=block.line + offset,
                            level=stated_level(text[end:]),
                        )
                    )
        return references

    @staticmethod
    def _collect_severity_labels(blocks: list[Block]) -> list[SeverityLabel]:
        """Find ``Severity:`` labels in prose, leaving code and literal blocks alone."""
        labels: list[SeverityLabel] = []
        for block in blocks:
            if block.kind == "code":
                continue
            for offset, text in enumerate(block.text.split("\n")):
                labels.extend(
                    SeverityLabel(label=match.group(1), line=block.line + offset)
                    for match in SEVERITY_LABEL_PATTERN.finditer(text)
                )
        return labels

    @staticmethod
    def _collect_entries(blocks: list[Block], samples: dict[int, CodeSample]) -> list[CriterionEntry]:
        """Build criterion entries from headings that name a success criterion.

        Args:
            blocks: Blocks in document order.
            samples: Code samples keyed by block index.

        Returns:
            List of CriterionEntry instances in document order.
        """
        entries: list[CriterionEntry] = []
        for start, block in enumerate(blocks):
            if block.kind != "heading":
                continue
            found = iter_criterion_ids(block.text)
            if not found:
                continue

            criterion_id, _, end = found[0]
            known = find_criterion(criterion_id)
            heading_text = DocumentParser._collapse_whitespace(block.text)
            if known is not None:
                title = known.title
            else:
                title = heading_text.replace(criterion_id, "", 1).strip(" -:–—") or criterion_id
            entry = CriterionEntry(
                criterion_id=criterion_id,
                title=title,
                level=stated_level(block.text[end:]) or (known.level if known else None),
                line=block.line,
            )

            in_violations = False
            for index in range(start + 1, len(blocks)):
                child = blocks[index]
                if child.kind == "heading":
                    if child.level <= block.level:
                        break
                    in_violations = bool(VIOLATIONS_PATTERN.search(child.text))
                elif child.kind == "paragraph":
                    if entry.description is None:
                        entry.description = DocumentParser._collapse_whitespace(child.text)
                    in_violations = bool(VIOLATIONS_PATTERN.search(child.text))
                elif child.kind == "item" and in_violations:
                    entry.violations.append(DocumentParser._collapse_whitespace(child.text))
                elif child.kind == "code" and index in samples:
                    sample = samples[index]
                    sample.criterion_id = criterion_id
                    entry.code_samples.append(sample)

            entries.append(entry)
        return entries

    def _extract_section(self, relative_path: Path) -> str:
        """Extract the top-level section from the path.

        Args:
            relative_path: Path relative to the documentation directory.

        Returns:
            Section name (first directory component or 'root').
        """
        parts = relative_path.parts
        return parts[0] if len(parts) > 1 else "root"

    def _compute_url(self, relative_path: Path) -> str:
        """Compute the published URL of a guide.

        Args:
            relative_path: Path relative to docs directory.

        Returns:
            Full URL when a base URL is configured, else the relative path.
        """
        path_str = relative_path.as_posix()
        if self.base_url:
            return f"{self.base_url}/{path_str}"
        return path_str

    @staticmethod
    def _clean_rst_content(content: str) -> str:
        """Remove RST markup artifacts that survive parsing.

        Args:
            content: Raw RST text content.

        Returns:
            Content without unresolved roles.
        """
        # Unknown roles survive as raw text (:role:`text` -> text)
        return re.sub(r":[\w-]+:`([^`]+)`", r"\1", content)

    @staticmethod
    def _collapse_whitespace(content: str) -> str:
        return re.sub(r"\s+", " ", content).strip()
