"""
SQLite-backed example store.

The store owns three tables: an append-only log of training examples, a
single-row table holding the current learned pattern set, and a single-row
learning statistics aggregate that is updated together with every insert.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from ..const import PATTERN_TYPE
from ..exceptions import StoreError
from ..models.recipe import FileMetadata, Recipe, RecipeSource
from ..models.training import (
    LearnedPatternSet,
    LearningPhase,
    LearningStats,
    TrainingExample,
)
from .stats import phase_for

_LOGGER = logging.getLogger(__name__)

# Only one pattern set rewrite may be in flight per process
_PATTERN_WRITE_LOCK = threading.Lock()

_SOURCES = ", ".join(f"'{source.value}'" for source in RecipeSource)

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS training_examples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    raw_text TEXT NOT NULL,
    parsed_result TEXT NOT NULL,
    source TEXT NOT NULL CHECK (source IN ({_SOURCES})),
    confidence_score REAL NOT NULL CHECK (confidence_score BETWEEN 0 AND 100),
    created_at TEXT NOT NULL,
    file_name TEXT,
    file_size_bytes INTEGER,
    file_kind TEXT NOT NULL DEFAULT 'pdf' CHECK (file_kind IN ('pdf', 'epub'))
);

CREATE INDEX IF NOT EXISTS idx_training_source ON training_examples(source);
CREATE INDEX IF NOT EXISTS idx_training_confidence ON training_examples(confidence_score);
CREATE INDEX IF NOT EXISTS idx_training_created ON training_examples(created_at);
CREATE INDEX IF NOT EXISTS idx_training_file_name ON training_examples(file_name);

CREATE TRIGGER IF NOT EXISTS training_examples_no_update
BEFORE UPDATE ON training_examples
BEGIN
    SELECT RAISE(ABORT, 'training examples are append-only');
END;

CREATE TRIGGER IF NOT EXISTS training_examples_no_delete
BEFORE DELETE ON training_examples
BEGIN
    SELECT RAISE(ABORT, 'training examples are append-only');
END;

CREATE TABLE IF NOT EXISTS learned_patterns (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pattern_type TEXT NOT NULL,
    pattern_data TEXT NOT NULL,
    learned_from_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS learning_stats (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    total_examples INTEGER NOT NULL DEFAULT 0,
    externally_assisted_count INTEGER NOT NULL DEFAULT 0,
    heuristic_only_count INTEGER NOT NULL DEFAULT 0,
    average_confidence REAL NOT NULL DEFAULT 0,
    phase TEXT NOT NULL DEFAULT 'training'
        CHECK (phase IN ('training', 'hybrid', 'autonomous')),
    last_pattern_update TEXT,
    updated_at TEXT
);

INSERT OR IGNORE INTO learning_stats (id) VALUES (1);
"""

_EXAMPLE_COLUMNS = (
    "id, raw_text, parsed_result, source, confidence_score, created_at, "
    "file_name, file_size_bytes, file_kind"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExampleStore:
    """Durable, append-only repository of training examples.

    Every public method opens its own connection, so a single store can be
    shared by threads of one process and by several processes.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Open (and if needed create) the store.

        Args:
            db_path: Path of the SQLite database file

        Raises:
            StoreError: If the database cannot be created
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_database()
        except (OSError, sqlite3.Error) as err:
            raise StoreError(f"Cannot open example store at {self.db_path}: {err}") from err
        _LOGGER.debug("Example store ready at %s", self.db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_database(self) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(_SCHEMA)

    # ------------------------------------------------------------------
    # Training examples
    # ------------------------------------------------------------------

    def add_example(
        self,
        raw_text: str,
        recipe: Recipe,
        source: RecipeSource,
        confidence: float,
        file_metadata: FileMetadata | None = None,
    ) -> TrainingExample:
        """Append a training example and update the learning statistics.

        Both writes happen in one transaction, so the statistics never count
        an example that was not stored.

        Args:
            raw_text: The document text the recipe was extracted from
            recipe: The accepted recipe
            source: Which extraction path produced the recipe
            confidence: Confidence score of the accepted recipe (0-100)
            file_metadata: Optional information about the source document

        Returns:
            The stored example

        Raises:
            StoreError: If the example cannot be written
        """
        metadata = file_metadata or FileMetadata()
        created_at = _now()
        source = RecipeSource(source)

        try:
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                cursor = conn.execute(
                    "INSERT INTO training_examples (raw_text, parsed_result, source, confidence_score, "
                    "created_at, file_name, file_size_bytes, file_kind) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        raw_text,
                        recipe.model_dump_json(),
                        source.value,
                        confidence,
                        created_at,
                        metadata.file_name,
                        metadata.file_size_bytes,
                        metadata.file_kind.value,
                    ),
                )
                example_id = cursor.lastrowid
                self._update_stats(conn, source, confidence, created_at)
                conn.commit()
        except sqlite3.Error as err:
            raise StoreError(f"Cannot record training example: {err}") from err

        _LOGGER.info(
            "Recorded training example %d (%s, %.0f%% confidence, file: %s)",
            example_id,
            source.value,
            confidence,
            metadata.file_name or "unknown",
        )
        return TrainingExample(
            id=example_id,
            raw_text=raw_text,
            parsed_result=recipe,
            source=source,
            confidence_score=confidence,
            created_at=created_at,
            file_name=metadata.file_name,
            file_size_bytes=metadata.file_size_bytes,
            file_kind=metadata.file_kind,
        )

    def _update_stats(self, conn: sqlite3.Connection, source: RecipeSource,
                      confidence: float, updated_at: str) -> None:
        row = conn.execute(
            "SELECT total_examples, average_confidence FROM learning_stats WHERE id = 1"
        ).fetchone()
        total = row["total_examples"] + 1
        average = row["average_confidence"] + (confidence - row["average_confidence"]) / total
        external = 1 if source.is_external else 0
        conn.execute(
            """
            UPDATE learning_stats
            SET total_examples = ?,
                externally_assisted_count = externally_assisted_count + ?,
                heuristic_only_count = heuristic_only_count + ?,
                average_confidence = ?,
                phase = ?,
                updated_at = ?
            WHERE id = 1
            """,
            (total, external, 1 - external, average, phase_for(total).value, updated_at),
        )

    def _row_to_example(self, row: sqlite3.Row) -> TrainingExample:
        try:
            return TrainingExample(
                id=row["id"],
                raw_text=row["raw_text"],
                parsed_result=Recipe.model_validate_json(row["parsed_result"]),
                source=row["source"],
                confidence_score=row["confidence_score"],
                created_at=row["created_at"],
                file_name=row["file_name"],
                file_size_bytes=row["file_size_bytes"],
                file_kind=row["file_kind"],
            )
        except ValidationError as err:
            raise StoreError(f"Training example {row['id']} is corrupt: {err}") from err

    def _query_examples(self, sql: str, params: Iterable = ()) -> list[TrainingExample]:
        try:
            with self._connect() as conn:
                rows = conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as err:
            raise StoreError(f"Cannot read training examples: {err}") from err
        return [self._row_to_example(row) for row in rows]

    def get_example(self, example_id: int) -> TrainingExample | None:
        examples = self._query_examples(
            f"SELECT {_EXAMPLE_COLUMNS} FROM training_examples WHERE id = ?", (example_id,))
        return examples[0] if examples else None

    def list_examples(self, limit: int = 50, offset: int = 0) -> list[TrainingExample]:
        """Return examples newest first."""
        return self._query_examples(
            f"SELECT {_EXAMPLE_COLUMNS} FROM training_examples "
            "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (max(0, limit), max(0, offset)),
        )

    def count_examples(self, min_confidence: float | None = None) -> int:
        """Count examples, optionally only those scoring above min_confidence."""
        sql = "SELECT COUNT(*) FROM training_examples"
        params: tuple = ()
        if min_confidence is not None:
            sql += " WHERE confidence_score > ?"
            params = (min_confidence,)
        try:
            with self._connect() as conn:
                return conn.execute(sql, params).fetchone()[0]
        except sqlite3.Error as err:
            raise StoreError(f"Cannot count training examples: {err}") from err

    def learnable_examples(
        self, sources: Iterable[RecipeSource], min_confidence: float
    ) -> list[TrainingExample]:
        """Return examples from the given sources scoring above min_confidence.

        Ordered by confidence descending, then id ascending.
        """
        values = [RecipeSource(source).value for source in sources]
        if not values:
            return []
        placeholders = ", ".join("?" for _ in values)
        return self._query_examples(
            f"SELECT {_EXAMPLE_COLUMNS} FROM training_examples "
            f"WHERE source IN ({placeholders}) AND confidence_score > ? "
            "ORDER BY confidence_score DESC, id ASC",
            [*values, min_confidence],
        )

    def has_example_for_file(self, file_name: str) -> bool:
        """True if an example was already recorded for this file name."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT 1 FROM training_examples WHERE file_name = ? LIMIT 1", (file_name,)
                ).fetchone()
        except sqlite3.Error as err:
            raise StoreError(f"Cannot look up file {file_name!r}: {err}") from err
        return row is not None

    def find_by_keywords(
        self,
        keywords: list[str],
        sources: Iterable[RecipeSource],
        min_confidence: float,
        limit: int = 10,
    ) -> list[TrainingExample]:
        """Return trusted examples whose raw text contains any of the keywords."""
        values = [RecipeSource(source).value for source in sources]
        if not keywords or not values:
            return []
        text_filter = " OR ".join("raw_text LIKE ?" for _ in keywords)
        source_filter = ", ".join("?" for _ in values)
        return self._query_examples(
            f"SELECT {_EXAMPLE_COLUMNS} FROM training_examples "
            f"WHERE ({text_filter}) AND source IN ({source_filter}) AND confidence_score > ? "
            "ORDER BY confidence_score DESC, id ASC LIMIT ?",
            [*(f"%{keyword}%" for keyword in keywords), *values, min_confidence, max(0, limit)],
        )

    # ------------------------------------------------------------------
    # Learning statistics
    # ------------------------------------------------------------------

    def get_learning_stats(self) -> LearningStats:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT * FROM learning_stats WHERE id = 1").fetchone()
        except sqlite3.Error as err:
            raise StoreError(f"Cannot read learning stats: {err}") from err

        if row is None:
            return LearningStats()
        return LearningStats(
            total_examples=row["total_examples"],
            externally_assisted_count=row["externally_assisted_count"],
            heuristic_only_count=row["heuristic_only_count"],
            average_confidence=round(row["average_confidence"], 2),
            phase=LearningPhase(row["phase"]),
            last_pattern_update=row["last_pattern_update"],
        )

    # ------------------------------------------------------------------
    # Learned pattern set
    # ------------------------------------------------------------------

    def load_pattern_set(self) -> LearnedPatternSet | None:
        """Return the current pattern set, or None before the first learn run."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT pattern_data FROM learned_patterns WHERE pattern_type = ? "
                    "ORDER BY id DESC LIMIT 1",
                    (PATTERN_TYPE,),
                ).fetchone()
        except sqlite3.Error as err:
            raise StoreError(f"Cannot read learned patterns: {err}") from err

        if row is None:
            return None
        try:
            return LearnedPatternSet.model_validate_json(row["pattern_data"])
        except ValidationError as err:
            raise StoreError(f"Stored pattern set is corrupt: {err}") from err

    def replace_pattern_set(self, pattern_set: LearnedPatternSet) -> None:
        """Atomically replace the current pattern set.

        The delete and the insert share one immediate transaction, so readers
        see either the previous set or the new one.

        Raises:
            StoreError: If the pattern set cannot be written
        """
        payload = pattern_set.to_json()
        with _PATTERN_WRITE_LOCK:
            try:
                with self._connect() as conn:
                    conn.execute("BEGIN IMMEDIATE")
                    conn.execute("DELETE FROM learned_patterns")
                    now = _now()
                    conn.execute(
                        "INSERT INTO learned_patterns "
                        "(pattern_type, pattern_data, learned_from_count, created_at) "
                        "VALUES (?, ?, ?, ?)",
                        (PATTERN_TYPE, payload, pattern_set.learned_from_count, now),
                    )
                    conn.execute(
                        "UPDATE learning_stats SET last_pattern_update = ? WHERE id = 1", (now,))
                    conn.commit()
            except sqlite3.Error as err:
                raise StoreError(f"Cannot store learned patterns: {err}") from err

        _LOGGER.info("Stored pattern set learned from %d examples", pattern_set.learned_from_count)


class PatternRepository:
    """Holds the current learned pattern set for the parsers.

    The repository is created once by the composition root and injected into
    the structure detector and the ingredient parser. It serves a snapshot of
    the stored set that is refreshed once per extraction, so every stage of one
    extraction sees the same set.
    """

    def __init__(self, store: ExampleStore | None = None,
                 pattern_set: LearnedPatternSet | None = None) -> None:
        self._store = store
        self._current = pattern_set
        self._lock = threading.Lock()

    @property
    def current(self) -> LearnedPatternSet | None:
        """The stored pattern set, or None when nothing was learned yet."""
        return self._current

    def effective(self) -> LearnedPatternSet:
        """The stored pattern set, or the built-in defaults."""
        return self._current or LearnedPatternSet()

    def refresh(self) -> LearnedPatternSet | None:
        """Reload the snapshot from the store.

        A failed read keeps the previous snapshot.
        """
        if self._store is None:
            return self._current
        try:
            loaded = self._store.load_pattern_set()
        except StoreError as err:
            _LOGGER.warning("Keeping previous pattern set, reload failed: %s", err)
            return self._current
        with self._lock:
            self._current = loaded
        return loaded

    def replace(self, pattern_set: LearnedPatternSet) -> None:
        """Persist a new pattern set and make it the current snapshot."""
        if self._store is not None:
            self._store.replace_pattern_set(pattern_set)
        with self._lock:
            self._current = pattern_set
