"""Content checks for the WCAG guide corpus."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote, urlsplit

from mcp_wcag_documentation.code_checks import check_code_sample, is_checkable
from mcp_wcag_documentation.models import Document, LintIssue, LintLevel, Severity
from mcp_wcag_documentation.parser import DocumentParser, iter_guide_files
from mcp_wcag_documentation.wcag import find_criterion

logger = logging.getLogger(__name__)

RULES = {
    "unreadable-document": LintLevel.ERROR,
    "broken-link": LintLevel.ERROR,
    "broken-anchor": LintLevel.ERROR,
    "unknown-criterion": LintLevel.ERROR,
    "obsolete-criterion": LintLevel.WARNING,
    "level-mismatch": LintLevel.ERROR,
    "invalid-code-sample": LintLevel.ERROR,
    "unknown-severity": LintLevel.ERROR,
    "orphan-document": LintLevel.WARNING,
}

# Entry points that nothing is expected to link to.
INDEX_FILENAMES = frozenset({"readme", "index", "changelog", "contributing", "license"})


@dataclass
class LintReport:
    """Result of linting a guide corpus."""

    issues: list[LintIssue] = field(default_factory=list)
    documents_checked: int = 0

    @property
    def errors(self) -> list[LintIssue]:
        """Return error-level issues."""
        return [issue for issue in self.issues if issue.level is LintLevel.ERROR]

    @property
    def warnings(self) -> list[LintIssue]:
        """Return warning-level issues."""
        return [issue for issue in self.issues if issue.level is LintLevel.WARNING]

    @property
    def ok(self) -> bool:
        """Return True when there are no errors."""
        return not self.errors


class GuideLinter:
    """Checks guides for broken links, bad criterion citations and invalid samples."""

    def __init__(
        self,
        parser: DocumentParser | None = None,
        check_code: bool = True,
        ignore: Iterable[str] = (),
    ) -> None:
        """Initialise linter.

        Args:
            parser: Parser used to read guides.
            check_code: Whether to syntax check code samples.
            ignore: Rule names to skip.

        Raises:
            ValueError: If an ignored rule name is unknown.
        """
        self.parser = parser or DocumentParser()
        self.check_code = check_code
        self.ignore = frozenset(ignore)
        unknown = self.ignore - RULES.keys()
        if unknown:
            msg = f"Unknown lint rules: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

    def lint_path(self, docs_path: Path) -> LintReport:
        """Lint every guide below a directory.

        Args:
            docs_path: Root of the documentation tree.

        Returns:
            LintReport with issues sorted by path, line and rule.

        Raises:
            ValueError: If the documentation path does not exist.
        """
        if not docs_path.exists():
            msg = f"Documentation path does not exist: {docs_path}"
            raise ValueError(msg)

        root = docs_path.resolve()
        files = iter_guide_files(root)
        logger.info("Found %d guide files to lint", len(files))

        issues: list[LintIssue] = []
        documents: dict[Path, Document] = {}
        for file_path in files:
            document = self.parser.parse_file(file_path, root)
            if document is None:
                relative = file_path.relative_to(root).as_posix()
                issues.append(self._issue(relative, 1, "unreadable-document", "could not be parsed"))
                continue
            documents[file_path] = document

        inbound: set[Path] = set()
        for file_path, document in documents.items():
            issues.extend(self._check_links(file_path, document, documents, inbound))
            issues.extend(self._check_criteria(document))
            issues.extend(self._check_severity_labels(document))
            if self.check_code:
                issues.extend(self._check_code_samples(document))

        for file_path, document in documents.items():
            if file_path not in inbound and file_path.stem.lower() not in INDEX_FILENAMES:
                issues.append(self._issue(document.path, 1, "orphan-document", "no other guide links to this document"))

        kept = [issue for issue in issues if issue.rule not in self.ignore]
        kept.sort(key=lambda issue: (issue.path, issue.line, issue.rule))
        logger.info("Linted %d documents, %d issues", len(documents), len(kept))
        return LintReport(issues=kept, documents_checked=len(files))

    def _check_links(
        self,
        file_path: Path,
        document: Document,
        documents: dict[Path, Document],
        inbound: set[Path],
    ) -> list[LintIssue]:
        """Verify relative link targets and anchors.

        Args:
            file_path: Absolute path of the linking document.
            document: The linking document.
            documents: All parsed documents keyed by absolute path.
            inbound: Updated with documents that are linked to.

        Returns:
            Issues for unresolved targets.
        """
        issues: list[LintIssue] = []
        for link in document.links:
            parts = urlsplit(link.target)
            if parts.scheme or parts.netloc:
                continue

            target_path = unquote(parts.path)
            fragment = unquote(parts.fragment)
            if target_path:
                target = (file_path.parent / target_path).resolve()
                if not target.exists():
                    issues.append(
                        self._issue(document.path, link.line, "broken-link", f"link target does not exist: {link.target}")
                    )
                    continue
                if target != file_path:
                    inbound.add(target)
            else:
                target = file_path

            target_document = documents.get(target)
            if fragment and target_document is not None and fragment not in target_document.anchors:
                issues.append(
                    self._issue(
                        document.path,
                        link.line,
                        "broken-anchor",
                        f"no heading '#{fragment}' in {target_document.path}",
                    )
                )
        return issues

    def _check_criteria(self, document: Document) -> list[LintIssue]:
        """Verify cited success criteria against the WCAG 2.2 catalogue.

        Args:
            document: Document to check.

        Returns:
            Issues for unknown, obsolete or mislabelled criteria.
        """
        issues: list[LintIssue] = []
        for reference in document.references:
            criterion = find_criterion(reference.criterion_id)
            if criterion is None:
                issues.append(
                    self._issue(
                        document.path,
                        reference.line,
                        "unknown-criterion",
                        f"{reference.criterion_id} is not a WCAG 2.2 success criterion",
                    )
                )
                continue
            if criterion.obsolete:
                issues.append(
                    self._issue(
                        document.path,
                        reference.line,
                        "obsolete-criterion",
                        f"{criterion.criterion_id} {criterion.title} is obsolete and removed in WCAG 2.2",
                    )
                )
            if reference.level is not None and reference.level is not criterion.level:
                issues.append(
                    self._issue(
                        document.path,
                        reference.line,
                        "level-mismatch",
                        f"{criterion.criterion_id} {criterion.title} is Level {criterion.level.value}, "
                        f"not Level {reference.level.value}",
                    )
                )
        return issues

    def _check_severity_labels(self, document: Document) -> list[LintIssue]:
        """Verify ``Severity:`` labels in prose use the rubric's vocabulary.

        Args:
            document: Document to check.

        Returns:
            Issues for unknown severity labels.
        """
        issues: list[LintIssue] = []
        for severity_label in document.severity_labels:
            try:
                Severity.parse(severity_label.label)
            except ValueError:
                issues.append(
                    self._issue(
                        document.path,
                        severity_label.line,
                        "unknown-severity",
                        f"'{severity_label.label}' is not one of Critical, High, Medium, Low",
                    )
                )
        return issues

    def _check_code_samples(self, document: Document) -> list[LintIssue]:
        """Syntax check code samples.

        Args:
            document: Document to check.

        Returns:
            One issue per problem found.
        """
        issues: list[LintIssue] = []
        for sample in document.code_samples:
            if not is_checkable(sample.language):
                continue
            for problem in check_code_sample(sample.language, sample.code):
                issues.append(
                    self._issue(document.path, sample.line, "invalid-code-sample", f"{sample.language}: {problem}")
                )
        return issues

    @staticmethod
    def _issue(path: str, line: int, rule: str, message: str) -> LintIssue:
        return LintIssue(path=path, line=line, rule=rule, message=message, level=RULES[rule])
