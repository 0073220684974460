"""Data models for WCAG accessibility guide documentation."""

from dataclasses import dataclass, field
from enum import Enum


class ConformanceLevel(Enum):
    """WCAG conformance level."""

    A = "A"
    AA = "AA"
    AAA = "AAA"

    @property
    def rank(self) -> int:
        """Return 1 for A, 2 for AA and 3 for AAA."""
        return len(self.value)


class Severity(Enum):
    """Audit severity of an accessibility issue."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Return the ordering rank, higher is more severe."""
        return {"Critical": 4, "High": 3, "Medium": 2, "Low": 1}[self.value]

    @classmethod
    def parse(cls, text: str) -> "Severity":
        """Parse a severity label, ignoring case and surrounding whitespace.

        Args:
            text: Label such as ``"critical"`` or ``"High"``.

        Returns:
            Matching Severity.

        Raises:
            ValueError: If the label is not a known severity.
        """
        label = text.strip().lower()
        for severity in cls:
            if severity.value.lower() == label:
                return severity
        msg = f"Unknown severity: {text!r}"
        raise ValueError(msg)


class Platform(Enum):
    """Implementation platform covered by the guides."""

    ANDROID = "android"
    IOS = "ios"
    WEB = "web"
    REACT_NATIVE = "react-native"
    FLUTTER = "flutter"


class LintLevel(Enum):
    """Level of a documentation lint finding."""

    ERROR = "error"
    WARNING = "warning"


@dataclass
class DocumentMetadata:
    """Metadata extracted from guide documents."""

    title: str
    description: str | None = None


@dataclass
class Heading:
    """A section heading and its link anchor."""

    level: int
    text: str
    line: int
    anchor: str


@dataclass
class Link:
    """A hyperlink found in a guide."""

    target: str
    text: str
    line: int


@dataclass
class CodeSample:
    """An illustrative code block from a guide."""

    language: str | None
    code: str
    line: int
    platform: Platform | None = None
    criterion_id: str | None = None
    path: str = ""


@dataclass
class CriterionReference:
    """A citation of a success criterion number in guide prose."""

    criterion_id: str
    line: int
    level: ConformanceLevel | None = None


@dataclass
class CriterionEntry:
    """A guide section dedicated to a single success criterion."""

    criterion_id: str
    title: str
    level: ConformanceLevel | None
    line: int
    description: str | None = None
    violations: list[str] = field(default_factory=list)
    code_samples: list[CodeSample] = field(default_factory=list)


@dataclass
class SeverityLabel:
    """A ``Severity:`` label written in guide prose."""

    label: str
    line: int


@dataclass
class Document:
    """Represents a guide document."""

    path: str
    title: str
    description: str | None
    section: str
    content: str
    url: str
    headings: list[Heading] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    code_samples: list[CodeSample] = field(default_factory=list)
    references: list[CriterionReference] = field(default_factory=list)
    criteria: list[CriterionEntry] = field(default_factory=list)
    severity_labels: list[SeverityLabel] = field(default_factory=list)

    @property
    def anchors(self) -> set[str]:
        """Return the set of heading anchors in this document."""
        return {heading.anchor for heading in self.headings}


@dataclass
class SearchResult:
    """Represents a search result."""

    path: str
    title: str
    url: str
    snippet: str
    score: float
    section: str


@dataclass
class CriterionHit:
    """A guide that cites a given success criterion."""

    path: str
    title: str
    url: str
    mentions: int
    first_line: int
    has_entry: bool


@dataclass
class SuccessCriterion:
    """A success criterion from the official WCAG 2.2 catalogue."""

    criterion_id: str
    title: str
    level: ConformanceLevel
    introduced_in: str = "2.0"
    obsolete: bool = False


@dataclass
class LintIssue:
    """A documentation invariant violation."""

    path: str
    line: int
    rule: str
    message: str
    level: LintLevel = LintLevel.ERROR

    def format(self) -> str:
        """Render as ``path:line: level [rule] message``."""
        return f"{self.path}:{self.line}: {self.level.value} [{self.rule}] {self.message}"
