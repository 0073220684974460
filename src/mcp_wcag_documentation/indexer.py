"""Indexer for WCAG accessibility guide documentation."""

import logging
import subprocess
import tempfile
from pathlib import Path

from mcp_wcag_documentation.database import DocumentDatabase
from mcp_wcag_documentation.parser import DocumentParser, iter_guide_files

logger = logging.getLogger(__name__)


class GuideIndexer:
    """Indexes WCAG guides from a local directory or a git repository."""

    def __init__(
        self,
        database: DocumentDatabase,
        repo_url: str | None = None,
        docs_path: str = "",
        base_url: str | None = None,
    ) -> None:
        """Initialise indexer with database instance.

        Args:
            database: DocumentDatabase instance for storing documents.
            repo_url: Git repository holding the guides.
            docs_path: Directory of the guides inside the repository.
            base_url: Base URL used to compute document URLs.
        """
        self.database = database
        self.repo_url = repo_url
        self.docs_path = docs_path.strip("/")
        self.parser = DocumentParser(base_url=base_url)

    def index_from_git(self, branch: str = "main", shallow: bool = True) -> int:
        """Clone the guides repository and index its documentation.

        Args:
            branch: Git branch to clone.
            shallow: Whether to do a shallow clone.

        Returns:
            Number of documents indexed.

        Raises:
            ValueError: If no repository URL is configured.
        """
        if not self.repo_url:
            msg = "No guides repository configured"
            raise ValueError(msg)

        with tempfile.TemporaryDirectory() as temp_dir:
            repo_path = Path(temp_dir) / "guides"
            self._clone_repository(repo_path, branch, shallow)
            docs_root = repo_path / self.docs_path if self.docs_path else repo_path
            return self._index_directory(docs_root)

    def index_from_path(self, docs_path: Path) -> int:
        """Index documentation from a local path.

        Args:
            docs_path: Path to the documentation directory.

        Returns:
            Number of documents indexed.
        """
        return self._index_directory(docs_path)

    def _clone_repository(self, target_path: Path, branch: str, shallow: bool) -> None:
        """Clone the guides repository.

        Args:
            target_path: Directory to clone into.
            branch: Git branch to clone.
            shallow: Whether to do a shallow clone.
        """
        sparse = shallow and bool(self.docs_path)
        cmd = ["git", "clone"]
        if shallow:
            cmd.extend(["--depth", "1"])
        if sparse:
            cmd.extend(["--filter=blob:none", "--sparse"])
        cmd.extend(["--branch", branch, str(self.repo_url), str(target_path)])

        logger.info("Cloning %s...", self.repo_url)
        subprocess.run(cmd, check=True, capture_output=True)  # noqa: S603

        # For sparse checkout, specify only the docs directory
        if sparse:
            logger.info("Setting up sparse checkout for %s...", self.docs_path)
            subprocess.run(  # noqa: S603
                ["git", "-C", str(target_path), "sparse-checkout", "set", self.docs_path],  # noqa: S607
                check=True,
                capture_output=True,
            )

        logger.info("Repository cloned successfully")

    def _index_directory(self, docs_path: Path) -> int:
        """Index all guide files in the documentation directory.

        Args:
            docs_path: Path to the documentation directory.

        Returns:
            Number of documents indexed.

        Raises:
            ValueError: If the documentation path does not exist.
        """
        if not docs_path.exists():
            msg = f"Documentation path does not exist: {docs_path}"
            raise ValueError(msg)

        guide_files = iter_guide_files(docs_path)
        logger.info("Found %d guide files in %s", len(guide_files), docs_path)

        indexed = entries = samples = 0
        for file_path in guide_files:
            document = self.parser.parse_file(file_path, docs_path)
            if document is None:
                logger.warning("Skipping unreadable guide: %s", file_path)
                continue
            self.database.upsert_document(document)
            indexed += 1
            entries += len(document.criteria)
            samples += len(document.code_samples)
            logger.debug("Indexed %s (%d criterion entries)", document.path, len(document.criteria))

        logger.info("Indexed %d guides with %d criterion entries and %d code samples", indexed, entries, samples)
        return indexed

    def rebuild_index(self, branch: str = "main") -> int:
        """Clear existing index and rebuild from scratch.

        Args:
            branch: Git branch to index from.

        Returns:
            Number of documents indexed.
        """
        logger.info("Clearing existing index...")
        self.database.clear()
        return self.index_from_git(branch)
