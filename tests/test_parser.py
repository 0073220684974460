"""Tests for guide document parser."""

from pathlib import Path

import pytest

from mcp_wcag_documentation.models import ConformanceLevel, Platform
from mcp_wcag_documentation.parser import DocumentParser, detect_platform, slugify_heading, stated_level


@pytest.fixture
def parser() -> DocumentParser:
    """Create a DocumentParser instance.

    Returns:
        DocumentParser instance.
    """
    return DocumentParser()


@pytest.fixture
def temp_docs_dir(tmp_path: Path) -> Path:
    """Create a temporary docs directory.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        Path to temporary docs directory.
    """
    docs_dir = tmp_path / "docs"
    docs_dir.mkdir()
    return docs_dir


TOUCH_TARGET_GUIDE = "\n".join(
    [
        "# Touch Target Guide",
        "",
        "Interactive elements need an adequate size.",
        "",
        "## 2.5.8 Target Size (Minimum) - Level AA",
        "",
        "Targets must be at least 24 by 24 CSS pixels.",
        "",
        "### Common Violations",
        "",
        "- Icon buttons smaller than 24dp",
        "- Closely spaced links",
        "",
        "### Android",
        "",
        "```kotlin",
        "IconButton(onClick = {}, modifier = Modifier.size(48.dp)) { }",
        "```",
        "",
    ]
)


def test_parse_basic_markdown_file(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test parsing a basic Markdown guide."""
    file_path = temp_docs_dir / "touch-targets.md"
    file_path.write_text(TOUCH_TARGET_GUIDE)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.title == "Touch Target Guide"
    assert doc.description == "Interactive elements need an adequate size."
    assert doc.section == "root"
    assert doc.url == "touch-targets.md"
    assert "24 by 24 CSS pixels" in doc.content


def test_code_blocks_excluded_from_content(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that code blocks are excluded from searchable content."""
    file_path = temp_docs_dir / "touch-targets.md"
    file_path.write_text(TOUCH_TARGET_GUIDE)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert "IconButton" not in doc.content
    assert "Closely spaced links" in doc.content


def test_extract_criterion_entry(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that a heading naming a success criterion becomes an entry."""
    file_path = temp_docs_dir / "touch-targets.md"
    file_path.write_text(TOUCH_TARGET_GUIDE)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert len(doc.criteria) == 1
    entry = doc.criteria[0]
    assert entry.criterion_id == "2.5.8"
    assert entry.title == "Target Size (Minimum)"
    assert entry.level is ConformanceLevel.AA
    assert entry.line == 5
    assert entry.description == "Targets must be at least 24 by 24 CSS pixels."
    assert entry.violations == ["Icon buttons smaller than 24dp", "Closely spaced links"]


def test_code_sample_platform_and_criterion(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that code samples carry language, platform and criterion."""
    file_path = temp_docs_dir / "touch-targets.md"
    file_path.write_text(TOUCH_TARGET_GUIDE)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert len(doc.code_samples) == 1
    sample = doc.code_samples[0]
    assert sample.language == "kotlin"
    assert sample.platform is Platform.ANDROID
    assert sample.criterion_id == "2.5.8"
    assert sample.path == "touch-targets.md"
    assert sample.line == 16
    assert "Modifier.size(48.dp)" in sample.code
    assert doc.criteria[0].code_samples == [sample]


def test_platform_from_heading_beats_language(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that the enclosing heading decides the platform before the language."""
    source = "\n".join(
        [
            "# Labels",
            "",
            "## React Native",
            "",
            "```jsx",
            '<Pressable accessibilityLabel="Close" />',
            "```",
            "",
            "## Example",
            "",
            "```swift",
            'button.accessibilityLabel = "Close"',
            "```",
            "",
            "```text",
            "plain",
            "```",
            "",
        ]
    )
    file_path = temp_docs_dir / "labels.md"
    file_path.write_text(source)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    platforms = [sample.platform for sample in doc.code_samples]
    assert platforms == [Platform.REACT_NATIVE, Platform.IOS, None]


def test_extract_references_with_levels(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that criterion citations are found with line numbers and stated levels."""
    source = "# Contrast\n\nText must meet 1.4.3 Contrast (Minimum) (AA).\nAlso see 1.4.11 and library 2.2.10.1 notes.\n"
    file_path = temp_docs_dir / "contrast.md"
    file_path.write_text(source)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert [(r.criterion_id, r.line, r.level) for r in doc.references] == [
        ("1.4.3", 3, ConformanceLevel.AA),
        ("1.4.11", 4, None),
    ]


def test_references_ignore_code(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that numbers inside code blocks are not treated as citations."""
    source = "# Versions\n\n```json\n{\"version\": \"1.2.3\"}\n```\n"
    file_path = temp_docs_dir / "versions.md"
    file_path.write_text(source)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.references == []


def test_extract_links(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that link and image targets are collected with line numbers."""
    source = "\n".join(
        [
            "# Patterns",
            "",
            "See the [severity rubric](../SEVERITY_GUIDELINES.md#critical)",
            "and the [collection pattern](patterns/COLLECTION_ITEMS_PATTERN.md).",
            "",
            "![Focus ring](images/focus.png)",
            "",
        ]
    )
    file_path = temp_docs_dir / "patterns.md"
    file_path.write_text(source)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert [(link.target, link.text, link.line) for link in doc.links] == [
        ("../SEVERITY_GUIDELINES.md#critical", "severity rubric", 3),
        ("patterns/COLLECTION_ITEMS_PATTERN.md", "collection pattern", 4),
        ("images/focus.png", "Focus ring", 6),
    ]


def test_heading_anchors(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test GitHub-style anchors, including duplicate headings."""
    source = "# Guide\n\n## 2.5.8 Target Size (Minimum)\n\n### Android\n\n### Android\n"
    file_path = temp_docs_dir / "guide.md"
    file_path.write_text(source)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert [h.anchor for h in doc.headings] == ["guide", "258-target-size-minimum", "android", "android-1"]
    assert [h.level for h in doc.headings] == [1, 2, 3, 3]


def test_unknown_criterion_entry_keeps_heading_title(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test entries for numbers outside WCAG 2.2 keep their heading text."""
    file_path = temp_docs_dir / "guide.md"
    file_path.write_text("# Guide\n\n## 1.4.14 - Made Up Criterion\n\nBody.\n")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.criteria[0].title == "Made Up Criterion"
    assert doc.criteria[0].level is None


def test_fallback_title_from_filename(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test fallback to filename when no title is found."""
    file_path = temp_docs_dir / "my-test-file.md"
    file_path.write_text("Just some content without a title.\n")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.title == "My Test File"


def test_first_heading_used_when_no_h1(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that the first heading is the title when there is no level-1 heading."""
    file_path = temp_docs_dir / "notes.md"
    file_path.write_text("## Focus Order\n\nContent.\n")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.title == "Focus Order"


def test_extract_section_and_url(temp_docs_dir: Path) -> None:
    """Test section extraction and URL generation with a base URL."""
    parser = DocumentParser(base_url="https://example.org/guides/")
    platform_dir = temp_docs_dir / "platforms" / "android"
    platform_dir.mkdir(parents=True)
    file_path = platform_dir / "compose.md"
    file_path.write_text("# Compose\n\nContent.\n")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.path == "platforms/android/compose.md"
    assert doc.section == "platforms"
    assert doc.url == "https://example.org/guides/platforms/android/compose.md"


def test_parse_basic_rst_file(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test parsing a basic RST guide."""
    rst_content = """
Keyboard Access
===============

All functionality must be operable through a keyboard, see 2.1.1 (Level A).

This is the second paragraph.
"""
    file_path = temp_docs_dir / "keyboard.rst"
    file_path.write_text(rst_content)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.title == "Keyboard Access"
    assert doc.description is not None
    assert doc.description.startswith("All functionality must be operable")
    assert [(r.criterion_id, r.level) for r in doc.references] == [("2.1.1", ConformanceLevel.A)]
    assert doc.url == "keyboard.rst"


def test_rst_code_blocks_and_links(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that RST code blocks are collected and excluded from content."""
    rst_content = """
Example
=======

See `the rubric <severity.rst>`_ for ratings.

.. code-block:: yaml

    severity: high
    criterion: 2.5.8

This text should be included.
"""
    file_path = temp_docs_dir / "example.rst"
    file_path.write_text(rst_content)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert "severity: high" not in doc.content
    assert "This text should be included" in doc.content
    assert [s.language for s in doc.code_samples] == ["yaml"]
    assert [link.target for link in doc.links] == ["severity.rst"]
    assert doc.references == []


def test_rst_title_and_named_references(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that the RST document title is level 1 and named references resolve."""
    rst_content = (
        "Title\n"
        "=====\n\n"
        "Intro.\n\n"
        "Sub\n"
        "---\n\n"
        "See `link <other.rst>`_ and ref_.\n\n"
        ".. _ref: third.rst\n"
    )
    file_path = temp_docs_dir / "titles.rst"
    file_path.write_text(rst_content)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.title == "Title"
    assert [(h.level, h.text, h.line, h.anchor) for h in doc.headings] == [
        (1, "Title", 1, "title"),
        (2, "Sub", 6, "sub"),
    ]
    assert [(link.target, link.line) for link in doc.links] == [("other.rst", 9), ("third.rst", 9)]


def test_rst_subtitle_heading(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that a promoted RST subtitle is kept as a level-2 heading."""
    file_path = temp_docs_dir / "subtitle.rst"
    file_path.write_text("Title\n=====\n\nSubtitle\n--------\n\nText.\n")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert [(h.level, h.text, h.line) for h in doc.headings] == [(1, "Title", 1), (2, "Subtitle", 4)]


def test_severity_labels_skip_code(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that severity labels are collected from prose only."""
    file_path = temp_docs_dir / "labels.md"
    file_path.write_text(
        "# Labels\n\n"
        "Intro.\n\n"
        "    Severity: indented\n\n"
        "- **Severity:** High\n\n"
        "```text\nSeverity: fenced\n```\n\n"
        "| Issue | Severity: Low |\n|---|---|\n| a | b |\n"
    )

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert [(label.label, label.line) for label in doc.severity_labels] == [("High", 7), ("Low", 13)]


def test_clean_rst_roles(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that RST roles are cleaned from content."""
    rst_content = """
Title
=====

See :doc:`other-document` for more information.
"""
    file_path = temp_docs_dir / "roles.rst"
    file_path.write_text(rst_content)

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert ":doc:" not in doc.content


def test_parse_invalid_file(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test that undecodable files return None gracefully."""
    file_path = temp_docs_dir / "invalid.md"
    file_path.write_bytes(b"\xff\xfe")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is None


def test_parse_empty_file(parser: DocumentParser, temp_docs_dir: Path) -> None:
    """Test parsing an empty guide."""
    file_path = temp_docs_dir / "empty.md"
    file_path.write_text("")

    doc = parser.parse_file(file_path, temp_docs_dir)

    assert doc is not None
    assert doc.title == "Empty"  # Fallback to filename
    assert doc.description is None


def test_parse_text(parser: DocumentParser) -> None:
    """Test parsing guide text held in memory."""
    doc = parser.parse_text("# Status Messages\n\nUse 4.1.3 for live regions.\n", "web/status.md")

    assert doc.title == "Status Messages"
    assert doc.section == "web"
    assert [r.criterion_id for r in doc.references] == ["4.1.3"]


def test_slugify_heading() -> None:
    """Test anchor generation for headings."""
    assert slugify_heading("Focus Order") == "focus-order"
    assert slugify_heading("1.4.3 Contrast (Minimum)") == "143-contrast-minimum"
    assert slugify_heading("Don't use `div`") == "dont-use-div"


def test_stated_level() -> None:
    """Test detection of a level stated after a criterion number."""
    assert stated_level(" Target Size (Minimum) - Level AA") is ConformanceLevel.AA
    assert stated_level(" (AAA)") is ConformanceLevel.AAA
    assert stated_level(" Contrast (Minimum)") is None
    assert stated_level(" applies. Level A elsewhere") is None


def test_detect_platform() -> None:
    """Test platform detection from heading text."""
    assert detect_platform("React Native (iOS)") is Platform.REACT_NATIVE
    assert detect_platform("Jetpack Compose") is Platform.ANDROID
    assert detect_platform("SwiftUI") is Platform.IOS
    assert detect_platform("Flutter widgets") is Platform.FLUTTER
    assert detect_platform("Web") is Platform.WEB
    assert detect_platform("Overview") is None
