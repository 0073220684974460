"""Severity rubric for accessibility issues found during audits."""

from collections.abc import Callable
from dataclasses import dataclass

from mcp_wcag_documentation.models import ConformanceLevel, Severity
from mcp_wcag_documentation.wcag import get_criterion


@dataclass
class IssueCharacteristics:
    """Observable characteristics of an accessibility issue."""

    criterion_id: str | None = None
    blocks_task: bool = False
    has_workaround: bool = True
    core_flow: bool = False
    affects_assistive_tech: bool = False
    widespread: bool = False


@dataclass
class SeverityAssessment:
    """Outcome of applying the rubric to an issue."""

    severity: Severity
    reason: str


@dataclass
class SeverityRule:
    """A single rubric row: when the predicate holds, the severity applies."""

    severity: Severity
    description: str
    predicate: Callable[[IssueCharacteristics, ConformanceLevel | None], bool]


def _blocks_without_workaround(issue: IssueCharacteristics, level: ConformanceLevel | None) -> bool:
    return issue.blocks_task and not issue.has_workaround and (issue.core_flow or issue.affects_assistive_tech)


def _significant_barrier(issue: IssueCharacteristics, level: ConformanceLevel | None) -> bool:
    if issue.blocks_task:
        return True
    if level is ConformanceLevel.A and issue.core_flow:
        return True
    return issue.affects_assistive_tech and not issue.has_workaround


def _conformance_failure(issue: IssueCharacteristics, level: ConformanceLevel | None) -> bool:
    return level in (ConformanceLevel.A, ConformanceLevel.AA)


def _best_practice(issue: IssueCharacteristics, level: ConformanceLevel | None) -> bool:
    return True


DEFAULT_RULES: tuple[SeverityRule, ...] = (
    SeverityRule(
        Severity.CRITICAL,
        "Blocks a core task or assistive technology users entirely, with no workaround",
        _blocks_without_workaround,
    ),
    SeverityRule(
        Severity.HIGH,
        "Blocks a task, fails Level A on a core flow, or leaves assistive technology users without a workaround",
        _significant_barrier,
    ),
    SeverityRule(
        Severity.MEDIUM,
        "Fails a Level A or AA success criterion",
        _conformance_failure,
    ),
    SeverityRule(
        Severity.LOW,
        "Fails a Level AAA success criterion or a best practice",
        _best_practice,
    ),
)

# Severities raised one step when an issue repeats across many screens.
_ESCALATION = {
    Severity.LOW: Severity.MEDIUM,
    Severity.MEDIUM: Severity.HIGH,
}


class SeverityRubric:
    """Maps issue characteristics to one of Critical, High, Medium or Low."""

    def __init__(self, rules: tuple[SeverityRule, ...] = DEFAULT_RULES) -> None:
        """Initialise the rubric.

        Args:
            rules: Ordered rules; the first matching rule decides.
        """
        self.rules = rules

    def assess(self, issue: IssueCharacteristics) -> SeverityAssessment:
        """Assign a severity to an issue.

        Args:
            issue: Characteristics of the issue.

        Returns:
            SeverityAssessment with the matching rule's description.

        Raises:
            UnknownCriterionError: If the criterion is not in WCAG 2.2.
            ValueError: If no rule matches.
        """
        level = get_criterion(issue.criterion_id).level if issue.criterion_id else None

        for rule in self.rules:
            if not rule.predicate(issue, level):
                continue
            if issue.widespread and rule.severity in _ESCALATION:
                escalated = _ESCALATION[rule.severity]
                return SeverityAssessment(escalated, f"{rule.description}; escalated because it is widespread")
            return SeverityAssessment(rule.severity, rule.description)

        msg = f"No severity rule matched issue: {issue}"
        raise ValueError(msg)


def baseline_severity(criterion_id: str) -> Severity:
    """Return the severity of a plain failure of a success criterion.

    Args:
        criterion_id: Criterion number such as ``"1.4.3"``.

    Returns:
        Severity with no aggravating characteristics.
    """
    return SeverityRubric().assess(IssueCharacteristics(criterion_id=criterion_id)).severity
