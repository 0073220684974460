"""SQLite FTS5 database operations for WCAG guide documentation."""

import re
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from mcp_wcag_documentation.models import CodeSample, CriterionHit, Document, Platform, SearchResult


class DocumentDatabase:
    """Manages the SQLite FTS5 database for guide search and criterion lookup."""

    def __init__(self, db_path: Path) -> None:
        """Initialise database with the given path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._initialise_schema()

    @staticmethod
    def _sanitise_query(query: str) -> str:
        """Make a user query safe for an FTS5 MATCH clause.

        Criterion numbers (``2.5.8``), attribute names (``aria-label``),
        apostrophes and any other punctuation are searched as a literal
        phrase, as are queries using upper-case FTS5 operators.

        Args:
            query: Raw user query string.

        Returns:
            Query string safe for FTS5 MATCH.
        """
        # FTS5 barewords are word characters only; anything else is syntax.
        special = re.compile(r"[^\w\s]")
        # Operators are keywords only in upper case.
        operators = re.compile(r"\b(AND|OR|NOT|NEAR)\b")

        if special.search(query) or operators.search(query):
            escaped = query.replace('"', '""')
            return f'"{escaped}"'
        return query

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections.

        Yields:
            SQLite connection with Row factory enabled.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialise_schema(self) -> None:
        """Create the guide, citation and code sample tables if missing.

        Heading text is indexed in its own FTS5 column so that criterion
        titles and platform names weigh more than body prose.
        """
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT UNIQUE NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    section TEXT,
                    url TEXT,
                    headings TEXT NOT NULL DEFAULT '',
                    content TEXT NOT NULL,
                    indexed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE VIRTUAL TABLE IF NOT EXISTS guides_fts USING fts5(
                    title,
                    headings,
                    description,
                    content,
                    content='documents',
                    content_rowid='id',
                    tokenize='porter unicode61'
                );

                CREATE TRIGGER IF NOT EXISTS guides_ai AFTER INSERT ON documents BEGIN
                    INSERT INTO guides_fts(rowid, title, headings, description, content)
                    VALUES (new.id, new.title, new.headings, new.description, new.content);
                END;

                CREATE TRIGGER IF NOT EXISTS guides_ad AFTER DELETE ON documents BEGIN
                    INSERT INTO guides_fts(guides_fts, rowid, title, headings, description, content)
                    VALUES ('delete', old.id, old.title, old.headings, old.description, old.content);
                END;

                CREATE TRIGGER IF NOT EXISTS guides_au AFTER UPDATE ON documents BEGIN
                    INSERT INTO guides_fts(guides_fts, rowid, title, headings, description, content)
                    VALUES ('delete', old.id, old.title, old.headings, old.description, old.content);
                    INSERT INTO guides_fts(rowid, title, headings, description, content)
                    VALUES (new.id, new.title, new.headings, new.description, new.content);
                END;

                CREATE INDEX IF NOT EXISTS idx_documents_section ON documents(section);

                CREATE TABLE IF NOT EXISTS criterion_references (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT NOT NULL,
                    criterion_id TEXT NOT NULL,
                    level TEXT,
                    line INTEGER NOT NULL,
                    is_entry INTEGER NOT NULL DEFAULT 0
                );

                CREATE INDEX IF NOT EXISTS idx_references_criterion ON criterion_references(criterion_id);
                CREATE INDEX IF NOT EXISTS idx_references_path ON criterion_references(path);

                CREATE TABLE IF NOT EXISTS code_samples (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT NOT NULL,
                    criterion_id TEXT,
                    language TEXT,
                    platform TEXT,
                    line INTEGER NOT NULL,
                    code TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_samples_criterion ON code_samples(criterion_id);
                CREATE INDEX IF NOT EXISTS idx_samples_path ON code_samples(path);
            """)
            conn.commit()

    def upsert_document(self, doc: Document) -> None:
        """Insert or update a document with its criterion references and code samples.

        Args:
            doc: Document to insert or update.
        """
        headings = "\n".join(heading.text for heading in doc.headings)
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO documents (path, title, description, section, url, headings, content)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    section = excluded.section,
                    url = excluded.url,
                    headings = excluded.headings,
                    content = excluded.content,
                    indexed_at = CURRENT_TIMESTAMP
                """,
                (doc.path, doc.title, doc.description, doc.section, doc.url, headings, doc.content),
            )

            conn.execute("DELETE FROM criterion_references WHERE path = ?", (doc.path,))
            conn.executemany(
                """
                INSERT INTO criterion_references (path, criterion_id, level, line, is_entry)
                VALUES (?, ?, ?, ?, ?)
                """,
                [(doc.path, ref.criterion_id, ref.level.value if ref.level else None, ref.line, 0) for ref in doc.references]
                + [
                    (doc.path, entry.criterion_id, entry.level.value if entry.level else None, entry.line, 1)
                    for entry in doc.criteria
                ],
            )

            conn.execute("DELETE FROM code_samples WHERE path = ?", (doc.path,))
            conn.executemany(
                """
                INSERT INTO code_samples (path, criterion_id, language, platform, line, code)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        doc.path,
                        sample.criterion_id,
                        sample.language,
                        sample.platform.value if sample.platform else None,
                        sample.line,
                        sample.code,
                    )
                    for sample in doc.code_samples
                ],
            )
            conn.commit()

    def search(
        self,
        query: str,
        section: str | None = None,
        limit: int = 10,
        criterion_id: str | None = None,
    ) -> list[SearchResult]:
        """Full-text search over guide titles, headings and prose.

        Args:
            query: Search query string.
            section: Only guides in this section.
            limit: Maximum number of results.
            criterion_id: Only guides that cite this success criterion.

        Returns:
            List of SearchResult instances, best match first.
        """
        if not query.strip():
            return []
        sanitised_query = self._sanitise_query(query)

        sql = """
            SELECT
                d.path,
                d.title,
                d.url,
                d.section,
                snippet(guides_fts, 3, '<mark>', '</mark>', '...', 64) as snippet,
                bm25(guides_fts, 5.0, 3.0, 2.0, 1.0) as score
            FROM guides_fts
            JOIN documents d ON guides_fts.rowid = d.id
            WHERE guides_fts MATCH ?
        """
        params: list[str | int] = [sanitised_query]

        if section:
            sql += " AND d.section = ?"
            params.append(section)
        if criterion_id:
            sql += " AND EXISTS (SELECT 1 FROM criterion_references r WHERE r.path = d.path AND r.criterion_id = ?)"
            params.append(criterion_id.strip())

        sql += " ORDER BY score LIMIT ?"
        params.append(limit)

        with self._get_connection() as conn:
            return [
                SearchResult(
                    path=row["path"],
                    title=row["title"],
                    url=row["url"],
                    section=row["section"],
                    snippet=row["snippet"],
                    # bm25() is negative, lower is better
                    score=abs(row["score"]),
                )
                for row in conn.execute(sql, params).fetchall()
            ]

    def find_criterion(self, criterion_id: str) -> list[CriterionHit]:
        """Find guides that cite a success criterion.

        Guides with a dedicated entry come first, then those citing it most.

        Args:
            criterion_id: Criterion number such as ``"2.5.8"``.

        Returns:
            List of CriterionHit instances.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT
                    d.path,
                    d.title,
                    d.url,
                    SUM(CASE WHEN r.is_entry = 0 THEN 1 ELSE 0 END) as mentions,
                    MIN(r.line) as first_line,
                    MAX(r.is_entry) as has_entry
                FROM criterion_references r
                JOIN documents d ON d.path = r.path
                WHERE r.criterion_id = ?
                GROUP BY d.path, d.title, d.url
                ORDER BY has_entry DESC, mentions DESC, d.path
                """,
                (criterion_id,),
            )
            return [
                CriterionHit(
                    path=row["path"],
                    title=row["title"],
                    url=row["url"],
                    mentions=int(row["mentions"]),
                    first_line=int(row["first_line"]),
                    has_entry=bool(row["has_entry"]),
                )
                for row in cursor.fetchall()
            ]

    def get_code_samples(
        self,
        criterion_id: str | None = None,
        platform: Platform | None = None,
        language: str | None = None,
        limit: int = 20,
    ) -> list[CodeSample]:
        """Retrieve code samples, optionally filtered.

        Args:
            criterion_id: Only samples illustrating this criterion.
            platform: Only samples for this platform.
            language: Only samples in this language (case insensitive).
            limit: Maximum number of results.

        Returns:
            List of CodeSample instances ordered by path and line.
        """
        sql = "SELECT * FROM code_samples WHERE 1 = 1"
        params: list[str | int] = []
        if criterion_id:
            sql += " AND criterion_id = ?"
            params.append(criterion_id)
        if platform:
            sql += " AND platform = ?"
            params.append(platform.value)
        if language:
            sql += " AND lower(language) = ?"
            params.append(language.lower())
        sql += " ORDER BY path, line LIMIT ?"
        params.append(limit)

        with self._get_connection() as conn:
            cursor = conn.execute(sql, params)
            return [
                CodeSample(
                    language=row["language"],
                    code=row["code"],
                    line=row["line"],
                    platform=Platform(row["platform"]) if row["platform"] else None,
                    criterion_id=row["criterion_id"],
                    path=row["path"],
                )
                for row in cursor.fetchall()
            ]

    def get_document(self, path: str) -> Document | None:
        """Retrieve a document by path.

        Args:
            path: Relative path to the document.

        Returns:
            Document instance or None if not found.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM documents WHERE path = ?",
                (path,),
            )
            row = cursor.fetchone()
            if row:
                return Document(
                    path=row["path"],
                    title=row["title"],
                    description=row["description"],
                    section=row["section"],
                    content=row["content"],
                    url=row["url"],
                )
            return None

    def list_sections(self) -> list[tuple[str, int]]:
        """List sections with their document counts.

        Returns:
            List of (section, count) tuples ordered by section name.
        """
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT section, COUNT(*) FROM documents GROUP BY section ORDER BY section")
            return [(row[0], int(row[1])) for row in cursor.fetchall()]

    def clear(self) -> None:
        """Clear all documents, references and code samples from the database."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM documents")
            conn.execute("DELETE FROM criterion_references")
            conn.execute("DELETE FROM code_samples")
            conn.commit()

    def get_document_count(self) -> int:
        """Return the total number of indexed documents.

        Returns:
            Count of documents in the database.
        """
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM documents")
            result = cursor.fetchone()
            return int(result[0]) if result else 0
