#!/usr/bin/env python3
"""
Build the token database from the TSV source corpora.

Run from the api directory.

Source files (in BIBLE_DATA_DIR, or --data-dir):
    ot_BSB.tsv, nt_BSB.tsv      BSB English tokens: id, text, skip_space_after, exclude
    macula-hebrew.tsv           Macula Hebrew OT words
    macula-greek-SBLGNT.tsv     Macula Greek NT words

Usage:
    python -m scripts.create_db
    python -m scripts.create_db --db /tmp/bible.db --only english
    python -m scripts.create_db --data-dir ~/corpora --force
"""

import argparse
import csv
import os
import sqlite3
import sys
from typing import Iterator, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import BIBLE_DATA_DIR, BIBLE_DB_PATH
from services.references.catalog import Catalog, get_catalog
from services.references.storage import create_schema, insert_tokens, rebuild_verses

BATCH_SIZE = 1000

ENGLISH_FILES = ["ot_BSB.tsv", "nt_BSB.tsv"]
HEBREW_FILE = "macula-hebrew.tsv"
GREEK_FILE = "macula-greek-SBLGNT.tsv"

HEBREW_COLUMNS = {
    "class": "class",
    "transliteration": "transliteration",
    "strong_number": "strongnumberx",
    "lemma": "lemma",
    "morph": "morph",
    "pos": "pos",
    "gender": "gender",
    "number": "number",
}

GREEK_COLUMNS = {
    "class": "class",
    "lemma": "lemma",
    "strong": "strong",
    "morph": "morph",
    "pos": "pos",
    "person": "person",
    "gender": "gender",
    "number": "number",
    "case_info": "case",
}


def read_tsv(path: str) -> Iterator[dict]:
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
        for row in reader:
            if any(row.values()):
                yield row


def split_word_id(digits: str) -> Optional[tuple[str, int, int, int]]:
    """
    Split BBCCCVVVWWW[S] into (book, chapter, verse, position).

    Digits past the verse form the position, so Hebrew sub-word
    segments stay ordered within their word.
    """
    if len(digits) < 11 or not digits.isdigit():
        return None
    return digits[:2], int(digits[2:5]), int(digits[5:8]), int(digits[8:])


def english_rows(path: str, catalog: Catalog) -> Iterator[dict]:
    for row in read_tsv(path):
        token_id = (row.get("id") or "").strip()
        parts = split_word_id(token_id)
        if parts is None:
            continue
        book_num, chapter, verse, position = parts
        book = catalog.lookup_by_ordinal(book_num)
        yield {
            "id": token_id,
            "book_num": book_num,
            "book_name": book.name if book else "",
            "chapter": chapter,
            "verse": verse,
            "word_position": position,
            "text": row.get("text", ""),
            "skip_space_after": 1 if row.get("skip_space_after") == "y" else 0,
            "exclude": 1 if row.get("exclude") == "y" else 0,
        }


def original_rows(path: str, catalog: Catalog, columns: dict) -> Iterator[dict]:
    """
    Rows of a Macula TSV.

    xml:id looks like "o010010010011" (Hebrew) or "n40001001001" (Greek):
    one letter, then the word id digits.
    """
    for row in read_tsv(path):
        xml_id = (row.get("xml:id") or row.get("xml_id") or "").strip()
        parts = split_word_id(xml_id[1:])
        if parts is None:
            continue
        book_num, chapter, verse, position = parts
        book = catalog.lookup_by_ordinal(book_num)
        after = row.get("after")
        record = {
            "id": xml_id,
            "ref": row.get("ref", ""),
            "book_num": book_num,
            "book_name": book.name if book else "",
            "chapter": chapter,
            "verse": verse,
            "word_position": position,
            "text": row.get("text", ""),
            # No "after" column means every word is followed by a space
            "skip_space_after": 1 if after is not None and after == "" else 0,
        }
        for column, source in columns.items():
            record[column] = row.get(source)
        yield record


def load_rows(conn: sqlite3.Connection, corpus: str, rows: Iterator[dict], label: str) -> int:
    batch = []
    count = 0
    for row in rows:
        batch.append(row)
        if len(batch) >= BATCH_SIZE:
            count += insert_tokens(conn, corpus, batch)
            conn.commit()
            batch.clear()
            print(f"\r    Processed {count} rows...", end="", flush=True)
    if batch:
        count += insert_tokens(conn, corpus, batch)
        conn.commit()
    print(f"\r    Imported {count} {label} rows.")
    return count


def main():
    parser = argparse.ArgumentParser(
        description="Create the Bible token database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m scripts.create_db                        # All corpora into BIBLE_DB_PATH
  python -m scripts.create_db --only english         # BSB English only
  python -m scripts.create_db --db /tmp/bible.db --force
        """
    )
    parser.add_argument("--db", default=BIBLE_DB_PATH, help="Database path to create")
    parser.add_argument("--data-dir", default=BIBLE_DATA_DIR, help="Directory with the TSV sources")
    parser.add_argument(
        "--only",
        choices=["english", "hebrew", "greek"],
        nargs="+",
        help="Import only these corpora"
    )
    parser.add_argument("--force", action="store_true", help="Replace an existing database")
    args = parser.parse_args()

    if os.path.exists(args.db):
        if not args.force:
            print(f"Database already exists: {args.db} (use --force to replace)")
            return 1
        os.remove(args.db)

    corpora = args.only or ["english", "hebrew", "greek"]
    catalog = get_catalog()

    print(f"Creating database at {args.db}")
    conn = sqlite3.connect(args.db)
    try:
        create_schema(conn)

        if "english" in corpora:
            print("Importing BSB English tokens...")
            for name in ENGLISH_FILES:
                path = os.path.join(args.data_dir, name)
                if not os.path.exists(path):
                    print(f"    Missing {path}, skipping")
                    continue
                load_rows(conn, "english", english_rows(path, catalog), f"English ({name})")
            print(f"    Assembled {rebuild_verses(conn)} English verses.")

        if "hebrew" in corpora:
            print("Importing Hebrew OT words...")
            path = os.path.join(args.data_dir, HEBREW_FILE)
            if os.path.exists(path):
                load_rows(conn, "hebrew", original_rows(path, catalog, HEBREW_COLUMNS), "Hebrew OT")
            else:
                print(f"    Missing {path}, skipping")

        if "greek" in corpora:
            print("Importing Greek NT words...")
            path = os.path.join(args.data_dir, GREEK_FILE)
            if os.path.exists(path):
                load_rows(conn, "greek", original_rows(path, catalog, GREEK_COLUMNS), "Greek NT")
            else:
                print(f"    Missing {path}, skipping")
    finally:
        conn.close()

    print("Database creation complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
