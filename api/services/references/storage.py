# api/services/references/storage.py
"""
SQLite token store.

One table per corpus, one row per word, keyed by the 11-digit word id:
    english_tokens  BSB English (with skip_space_after / exclude flags)
    hebrew_tokens   Macula Hebrew OT
    greek_tokens    Macula Greek NT (SBLGNT)

english_verses holds assembled English verse text for search; it is
derived from english_tokens by rebuild_verses().

The store is opened read-only and uses one connection per call, so a
single TokenStore can be shared between request threads.
"""

import logging
import os
import sqlite3
from contextlib import closing
from itertools import groupby
from typing import Iterable, Optional

from .errors import StorageError
from .token_assembler import Token, assemble

logger = logging.getLogger(__name__)

# corpus name -> table and the columns carried as opaque token attributes
CORPORA = {
    "english": {
        "table": "english_tokens",
        "attributes": (),
        "has_exclude": True,
    },
    "hebrew": {
        "table": "hebrew_tokens",
        "attributes": ("ref", "class", "transliteration", "strong_number", "lemma", "morph", "pos", "gender", "number"),
        "has_exclude": False,
    },
    "greek": {
        "table": "greek_tokens",
        "attributes": ("ref", "class", "lemma", "strong", "morph", "pos", "person", "gender", "number", "case_info"),
        "has_exclude": False,
    },
}

SCHEMA = """
CREATE TABLE IF NOT EXISTS hebrew_tokens (
  id TEXT PRIMARY KEY,
  ref TEXT NOT NULL,
  book_num TEXT NOT NULL,
  book_name TEXT NOT NULL,
  chapter INTEGER NOT NULL,
  verse INTEGER NOT NULL,
  word_position INTEGER NOT NULL,
  class TEXT,
  text TEXT NOT NULL,
  transliteration TEXT,
  strong_number TEXT,
  lemma TEXT,
  morph TEXT,
  pos TEXT,
  gender TEXT,
  number TEXT,
  skip_space_after BOOLEAN DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_hebrew_tokens_book_chapter_verse ON hebrew_tokens(book_num, chapter, verse);

CREATE TABLE IF NOT EXISTS greek_tokens (
  id TEXT PRIMARY KEY,
  ref TEXT NOT NULL,
  book_num TEXT NOT NULL,
  book_name TEXT NOT NULL,
  chapter INTEGER NOT NULL,
  verse INTEGER NOT NULL,
  word_position INTEGER NOT NULL,
  class TEXT,
  text TEXT NOT NULL,
  lemma TEXT,
  strong TEXT,
  morph TEXT,
  pos TEXT,
  person TEXT,
  gender TEXT,
  number TEXT,
  case_info TEXT,
  skip_space_after BOOLEAN DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_greek_tokens_book_chapter_verse ON greek_tokens(book_num, chapter, verse);

CREATE TABLE IF NOT EXISTS english_tokens (
  id TEXT PRIMARY KEY,
  book_num TEXT NOT NULL,
  book_name TEXT NOT NULL,
  chapter INTEGER NOT NULL,
  verse INTEGER NOT NULL,
  word_position INTEGER NOT NULL,
  text TEXT NOT NULL,
  skip_space_after BOOLEAN NOT NULL,
  exclude BOOLEAN NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_english_tokens_book_chapter_verse ON english_tokens(book_num, chapter, verse);

CREATE TABLE IF NOT EXISTS english_verses (
  id TEXT PRIMARY KEY,
  book_num TEXT NOT NULL,
  book_name TEXT NOT NULL,
  chapter INTEGER NOT NULL,
  verse INTEGER NOT NULL,
  verse_ref TEXT NOT NULL,
  text TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_english_verses_book_chapter ON english_verses(book_num, chapter);
"""


def corpus_config(corpus: str) -> dict:
    try:
        return CORPORA[corpus]
    except KeyError:
        raise ValueError(f"Unknown corpus: {corpus}") from None


def create_schema(conn: sqlite3.Connection) -> None:
    """Create token and verse tables if they don't exist."""
    conn.executescript(SCHEMA)
    conn.commit()


def insert_tokens(conn: sqlite3.Connection, corpus: str, rows: Iterable[dict]) -> int:
    """
    Insert token rows (dicts keyed by column name) into a corpus table.

    Missing flag columns default to 0, other missing columns to NULL.
    The caller commits. Returns the number of rows written.
    """
    config = corpus_config(corpus)
    columns = ["id", "book_num", "book_name", "chapter", "verse", "word_position", "text", "skip_space_after"]
    if config["has_exclude"]:
        columns.append("exclude")
    columns.extend(config["attributes"])

    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT OR REPLACE INTO {config['table']} ({', '.join(columns)}) VALUES ({placeholders})"

    count = 0
    cur = conn.cursor()
    for row in rows:
        cur.execute(sql, [row.get(c, 0 if c in ("skip_space_after", "exclude") else None) for c in columns])
        count += 1
    return count


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the query matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_token(row: sqlite3.Row, config: dict) -> Token:
    return Token(
        text=row["text"],
        space_after=not row["skip_space_after"],
        excluded=bool(row["exclude"]) if config["has_exclude"] else False,
        position=row["word_position"],
        attributes={name: row[name] for name in config["attributes"]},
    )


def _verse_key(row: sqlite3.Row) -> tuple:
    return row["book_num"], row["book_name"], row["chapter"], row["verse"]


def rebuild_verses(conn: sqlite3.Connection) -> int:
    """
    Refill english_verses by assembling english_tokens verse by verse.

    Verses whose tokens are all excluded are left out.
    """
    conn.execute("DELETE FROM english_verses")
    cur = conn.cursor()
    cur.row_factory = sqlite3.Row
    cur.execute(
        """
        SELECT book_num, book_name, chapter, verse, word_position, text, skip_space_after, exclude
        FROM english_tokens
        ORDER BY book_num, chapter, verse, word_position
        """
    )
    config = CORPORA["english"]

    count = 0
    for (book_num, book_name, chapter, verse), rows in groupby(cur, key=_verse_key):
        text = assemble(_row_to_token(r, config) for r in rows)
        if not text:
            continue
        conn.execute(
            """INSERT INTO english_verses (id, book_num, book_name, chapter, verse, verse_ref, text)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                f"{book_num}{chapter:03d}{verse:03d}",
                book_num,
                book_name,
                chapter,
                verse,
                f"{book_name} {chapter}:{verse}",
                text,
            ),
        )
        count += 1
    conn.commit()
    return count


class TokenStore:
    """
    Read access to the token database.

    Usage:
        store = TokenStore("/path/to/bible.db")
        tokens = store.fetch_tokens("43", 3, 16)
        verses = store.fetch_token_range("43", 3, 16, 18)
    """

    def __init__(self, db_path: str, readonly: bool = True):
        self.db_path = db_path
        self.readonly = readonly

    def _connect(self) -> sqlite3.Connection:
        if not os.path.exists(self.db_path):
            logger.error(f"Token database not found: {self.db_path}")
            raise StorageError(
                f"Database file not found: {self.db_path}. Run 'python -m scripts.create_db' to create it."
            )
        if self.readonly:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
        else:
            conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        try:
            with closing(self._connect()) as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Token query failed on {self.db_path}: {e}")
            raise StorageError(str(e)) from e

    def fetch_tokens(self, book_id: str, chapter: int, verse: int, corpus: str = "english") -> list[Token]:
        """Tokens of one verse in word-position order."""
        config = corpus_config(corpus)
        rows = self._query(
            f"""
            SELECT * FROM {config['table']}
            WHERE book_num = ? AND chapter = ? AND verse = ?
            ORDER BY word_position
            """,
            (book_id, chapter, verse),
        )
        return [_row_to_token(r, config) for r in rows]

    def fetch_token_range(
        self,
        book_id: str,
        chapter: int,
        verse_start: int,
        verse_end: int,
        corpus: str = "english",
    ) -> dict[int, list[Token]]:
        """Tokens of an inclusive verse range, grouped by verse."""
        config = corpus_config(corpus)
        rows = self._query(
            f"""
            SELECT * FROM {config['table']}
            WHERE book_num = ? AND chapter = ? AND verse >= ? AND verse <= ?
            ORDER BY verse, word_position
            """,
            (book_id, chapter, verse_start, verse_end),
        )
        verses: dict[int, list[Token]] = {}
        for row in rows:
            verses.setdefault(row["verse"], []).append(_row_to_token(row, config))
        return verses

    def fetch_distinct_verses(
        self,
        book_id: str,
        chapter: int,
        verse_start: int,
        verse_end: int,
        corpus: str = "english",
    ) -> list[int]:
        """Verse numbers in the range that have at least one token."""
        config = corpus_config(corpus)
        rows = self._query(
            f"""
            SELECT DISTINCT verse FROM {config['table']}
            WHERE book_num = ? AND chapter = ? AND verse >= ? AND verse <= ?
            ORDER BY verse
            """,
            (book_id, chapter, verse_start, verse_end),
        )
        return [r["verse"] for r in rows]

    def search_text(
        self,
        query: str,
        testament: Optional[str] = None,
        book_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        """
        Search assembled English verses.

        Args:
            query: Substring to look for (case-insensitive for ASCII)
            testament: "OT" or "NT" to restrict by book ordinal
            book_id: Two-digit book ordinal
            limit: Maximum results
            offset: Results to skip, for pagination
        """
        conditions = ["text LIKE ? ESCAPE '\\'"]
        params: list = [f"%{escape_like(query)}%"]

        if testament == "OT":
            conditions.append("CAST(book_num AS INTEGER) <= 39")
        elif testament == "NT":
            conditions.append("CAST(book_num AS INTEGER) >= 40")

        if book_id:
            conditions.append("book_num = ?")
            params.append(book_id)

        params.extend([limit, offset])
        rows = self._query(
            f"""
            SELECT text, verse_ref AS reference, book_name AS book, book_num, chapter, verse
            FROM english_verses
            WHERE {' AND '.join(conditions)}
            ORDER BY book_num, chapter, verse
            LIMIT ? OFFSET ?
            """,
            tuple(params),
        )
        logger.debug(f"Search '{query}' returned {len(rows)} rows")
        return [dict(r) for r in rows]
