"""WCAG 2.2 success criteria catalogue."""

import re

from mcp_wcag_documentation.models import ConformanceLevel, SuccessCriterion

# Matches "2.5.8" but not the tail of "1.2.3.4" or a version like "v2.2.1".
CRITERION_PATTERN = re.compile(r"(?<![\w.])([1-4])\.(\d{1,2})\.(\d{1,2})(?![\d]|\.\d)")

PRINCIPLES = {
    "1": "Perceivable",
    "2": "Operable",
    "3": "Understandable",
    "4": "Robust",
}

GUIDELINES = {
    "1.1": "Text Alternatives",
    "1.2": "Time-based Media",
    "1.3": "Adaptable",
    "1.4": "Distinguishable",
    "2.1": "Keyboard Accessible",
    "2.2": "Enough Time",
    "2.3": "Seizures and Physical Reactions",
    "2.4": "Navigable",
    "2.5": "Input Modalities",
    "3.1": "Readable",
    "3.2": "Predictable",
    "3.3": "Input Assistance",
    "4.1": "Compatible",
}

# (id, title, level, introduced in)
_CRITERIA: tuple[tuple[str, str, str, str], ...] = (
    ("1.1.1", "Non-text Content", "A", "2.0"),
    ("1.2.1", "Audio-only and Video-only (Prerecorded)", "A", "2.0"),
    ("1.2.2", "Captions (Prerecorded)", "A", "2.0"),
    ("1.2.3", "Audio Description or Media Alternative (Prerecorded)", "A", "2.0"),
    ("1.2.4", "Captions (Live)", "AA", "2.0"),
    ("1.2.5", "Audio Description (Prerecorded)", "AA", "2.0"),
    ("1.2.6", "Sign Language (Prerecorded)", "AAA", "2.0"),
    ("1.2.7", "Extended Audio Description (Prerecorded)", "AAA", "2.0"),
    ("1.2.8", "Media Alternative (Prerecorded)", "AAA", "2.0"),
    ("1.2.9", "Audio-only (Live)", "AAA", "2.0"),
    ("1.3.1", "Info and Relationships", "A", "2.0"),
    ("1.3.2", "Meaningful Sequence", "A", "2.0"),
    ("1.3.3", "Sensory Characteristics", "A", "2.0"),
    ("1.3.4", "Orientation", "AA", "2.1"),
    ("1.3.5", "Identify Input Purpose", "AA", "2.1"),
    ("1.3.6", "Identify Purpose", "AAA", "2.1"),
    ("1.4.1", "Use of Color", "A", "2.0"),
    ("1.4.2", "Audio Control", "A", "2.0"),
    ("1.4.3", "Contrast (Minimum)", "AA", "2.0"),
    ("1.4.4", "Resize Text", "AA", "2.0"),
    ("1.4.5", "Images of Text", "AA", "2.0"),
    ("1.4.6", "Contrast (Enhanced)", "AAA", "2.0"),
    ("1.4.7", "Low or No Background Audio", "AAA", "2.0"),
    ("1.4.8", "Visual Presentation", "AAA", "2.0"),
    ("1.4.9", "Images of Text (No Exception)", "AAA", "2.0"),
    ("1.4.10", "Reflow", "AA", "2.1"),
    ("1.4.11", "Non-text Contrast", "AA", "2.1"),
    ("1.4.12", "Text Spacing", "AA", "2.1"),
    ("1.4.13", "Content on Hover or Focus", "AA", "2.1"),
    ("2.1.1", "Keyboard", "A", "2.0"),
    ("2.1.2", "No Keyboard Trap", "A", "2.0"),
    ("2.1.3", "Keyboard (No Exception)", "AAA", "2.0"),
    ("2.1.4", "Character Key Shortcuts", "A", "2.1"),
    ("2.2.1", "Timing Adjustable", "A", "2.0"),
    ("2.2.2", "Pause, Stop, Hide", "A", "2.0"),
    ("2.2.3", "No Timing", "AAA", "2.0"),
    ("2.2.4", "Interruptions", "AAA", "2.0"),
    ("2.2.5", "Re-authenticating", "AAA", "2.0"),
    ("2.2.6", "Timeouts", "AAA", "2.1"),
    ("2.3.1", "Three Flashes or Below Threshold", "A", "2.0"),
    ("2.3.2", "Three Flashes", "AAA", "2.0"),
    ("2.3.3", "Animation from Interactions", "AAA", "2.1"),
    ("2.4.1", "Bypass Blocks", "A", "2.0"),
    ("2.4.2", "Page Titled", "A", "2.0"),
    ("2.4.3", "Focus Order", "A", "2.0"),
    ("2.4.4", "Link Purpose (In Context)", "A", "2.0"),
    ("2.4.5", "Multiple Ways", "AA", "2.0"),
    ("2.4.6", "Headings and Labels", "AA", "2.0"),
    ("2.4.7", "Focus Visible", "AA", "2.0"),
    ("2.4.8", "Location", "AAA", "2.0"),
    ("2.4.9", "Link Purpose (Link Only)", "AAA", "2.0"),
    ("2.4.10", "Section Headings", "AAA", "2.0"),
    ("2.4.11", "Focus Not Obscured (Minimum)", "AA", "2.2"),
    ("2.4.12", "Focus Not Obscured (Enhanced)", "AAA", "2.2"),
    ("2.4.13", "Focus Appearance", "AAA", "2.2"),
    ("2.5.1", "Pointer Gestures", "A", "2.1"),
    ("2.5.2", "Pointer Cancellation", "A", "2.1"),
    ("2.5.3", "Label in Name", "A", "2.1"),
    ("2.5.4", "Motion Actuation", "A", "2.1"),
    ("2.5.5", "Target Size (Enhanced)", "AAA", "2.1"),
    ("2.5.6", "Concurrent Input Mechanisms", "AAA", "2.1"),
    ("2.5.7", "Dragging Movements", "AA", "2.2"),
    ("2.5.8", "Target Size (Minimum)", "AA", "2.2"),
    ("3.1.1", "Language of Page", "A", "2.0"),
    ("3.1.2", "Language of Parts", "AA", "2.0"),
    ("3.1.3", "Unusual Words", "AAA", "2.0"),
    ("3.1.4", "Abbreviations", "AAA", "2.0"),
    ("3.1.5", "Reading Level", "AAA", "2.0"),
    ("3.1.6", "Pronunciation", "AAA", "2.0"),
    ("3.2.1", "On Focus", "A", "2.0"),
    ("3.2.2", "On Input", "A", "2.0"),
    ("3.2.3", "Consistent Navigation", "AA", "2.0"),
    ("3.2.4", "Consistent Identification", "AA", "2.0"),
    ("3.2.5", "Change on Request", "AAA", "2.0"),
    ("3.2.6", "Consistent Help", "A", "2.2"),
    ("3.3.1", "Error Identification", "A", "2.0"),
    ("3.3.2", "Labels or Instructions", "A", "2.0"),
    ("3.3.3", "Error Suggestion", "AA", "2.0"),
    ("3.3.4", "Error Prevention (Legal, Financial, Data)", "AA", "2.0"),
    ("3.3.5", "Help", "AAA", "2.0"),
    ("3.3.6", "Error Prevention (All)", "AAA", "2.0"),
    ("3.3.7", "Redundant Entry", "A", "2.2"),
    ("3.3.8", "Accessible Authentication (Minimum)", "AA", "2.2"),
    ("3.3.9", "Accessible Authentication (Enhanced)", "AAA", "2.2"),
    ("4.1.1", "Parsing", "A", "2.0"),
    ("4.1.2", "Name, Role, Value", "A", "2.0"),
    ("4.1.3", "Status Messages", "AA", "2.1"),
)

OBSOLETE_CRITERIA = frozenset({"4.1.1"})

CATALOGUE: dict[str, SuccessCriterion] = {
    criterion_id: SuccessCriterion(
        criterion_id=criterion_id,
        title=title,
        level=ConformanceLevel(level),
        introduced_in=introduced_in,
        obsolete=criterion_id in OBSOLETE_CRITERIA,
    )
    for criterion_id, title, level, introduced_in in _CRITERIA
}


class UnknownCriterionError(ValueError):
    """Raised when a success criterion number is not part of WCAG 2.2."""

    def __init__(self, criterion_id: str) -> None:
        """Initialise with the offending criterion number.

        Args:
            criterion_id: The unknown criterion number.
        """
        super().__init__(f"Unknown WCAG 2.2 success criterion: {criterion_id}")
        self.criterion_id = criterion_id


def find_criterion(criterion_id: str) -> SuccessCriterion | None:
    """Look up a success criterion by number.

    Args:
        criterion_id: Criterion number such as ``"2.5.8"``.

    Returns:
        SuccessCriterion or None if the number is not in WCAG 2.2.
    """
    return CATALOGUE.get(criterion_id.strip())


def get_criterion(criterion_id: str) -> SuccessCriterion:
    """Look up a success criterion by number.

    Args:
        criterion_id: Criterion number such as ``"2.5.8"``.

    Returns:
        Matching SuccessCriterion.

    Raises:
        UnknownCriterionError: If the number is not in WCAG 2.2.
    """
    criterion = find_criterion(criterion_id)
    if criterion is None:
        raise UnknownCriterionError(criterion_id)
    return criterion


def is_known_criterion(criterion_id: str) -> bool:
    """Return True if the number is a WCAG 2.2 success criterion."""
    return find_criterion(criterion_id) is not None


def criteria_for_level(level: ConformanceLevel, cumulative: bool = True) -> list[SuccessCriterion]:
    """List the success criteria required for a conformance target.

    Obsolete criteria are excluded.

    Args:
        level: Conformance target.
        cumulative: Include lower levels (AA also requires all of A).

    Returns:
        Criteria in catalogue order.
    """
    if cumulative:
        selected = (c for c in CATALOGUE.values() if c.level.rank <= level.rank)
    else:
        selected = (c for c in CATALOGUE.values() if c.level is level)
    return [c for c in selected if not c.obsolete]


def principle_name(criterion_id: str) -> str:
    """Return the WCAG principle a criterion belongs to.

    Raises:
        UnknownCriterionError: If the number is not in WCAG 2.2.
    """
    criterion = get_criterion(criterion_id)
    return PRINCIPLES[criterion.criterion_id.split(".")[0]]


def guideline_name(criterion_id: str) -> str:
    """Return the WCAG guideline a criterion belongs to.

    Raises:
        UnknownCriterionError: If the number is not in WCAG 2.2.
    """
    criterion = get_criterion(criterion_id)
    return GUIDELINES[criterion.criterion_id.rsplit(".", 1)[0]]


def iter_criterion_ids(text: str) -> list[tuple[str, int, int]]:
    """Find success criterion numbers in a piece of text.

    Only the shape of the number is checked; unknown numbers are returned
    too so that callers can report them.

    Args:
        text: Text to scan.

    Returns:
        List of (criterion_id, start, end) tuples in order of appearance.
    """
    return [(match.group(0), match.start(), match.end()) for match in CRITERION_PATTERN.finditer(text)]
