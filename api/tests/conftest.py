# api/tests/conftest.py
"""
Shared fixtures: a small token database seeded with a few verses.
"""

import os
import sqlite3
import sys
import tempfile

import pytest

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.references import (
    TokenStore,
    create_schema,
    get_catalog,
    insert_tokens,
    rebuild_verses,
)

GENESIS_1_1 = "In the beginning God created the heavens and the earth."
JOHN_3_16 = (
    "For God so loved the world that He gave His one and only Son, "
    "that everyone who believes in Him shall not perish but have eternal life."
)
JOHN_3_17 = "For God did not send His Son into the world to condemn the world, but to save the world through Him."


def english_tokens(book_num, book_name, chapter, verse, words):
    """
    Token rows from (text, space_after) pairs; a third element marks exclusion.
    """
    rows = []
    for position, word in enumerate(words, start=1):
        text, space_after = word[0], word[1]
        excluded = word[2] if len(word) > 2 else False
        rows.append({
            "id": f"{book_num}{chapter:03d}{verse:03d}{position:03d}",
            "book_num": book_num,
            "book_name": book_name,
            "chapter": chapter,
            "verse": verse,
            "word_position": position,
            "text": text,
            "skip_space_after": 0 if space_after else 1,
            "exclude": 1 if excluded else 0,
        })
    return rows


def words_of(sentence):
    """Split a sentence into (word, space_after) pairs, detaching , . ; as tokens."""
    words = []
    for chunk in sentence.split(" "):
        trailing = ""
        while chunk and chunk[-1] in ",.;":
            trailing = chunk[-1] + trailing
            chunk = chunk[:-1]
        if trailing:
            words.append((chunk, False))
            words.append((trailing, True))
        else:
            words.append((chunk, True))
    # Last token of the verse: the flag is irrelevant, the assembler never adds a trailing space
    return words


def seed_database(path):
    conn = sqlite3.connect(path)
    try:
        create_schema(conn)

        genesis = [
            ("In", True), ("the", True), ("beginning", True),
            ("[a]", True, True),
            ("God", True), ("created", True), ("the", True), ("heavens", True),
            ("and", True), ("the", True), ("earth", False), (".", True),
        ]
        insert_tokens(conn, "english", english_tokens("01", "Genesis", 1, 1, genesis))
        insert_tokens(conn, "english", english_tokens("43", "John", 3, 16, words_of(JOHN_3_16)))
        insert_tokens(conn, "english", english_tokens("43", "John", 3, 17, words_of(JOHN_3_17)))
        # John 3:18 has only apparatus text
        insert_tokens(conn, "english", english_tokens("43", "John", 3, 18, [("[b]", True, True)]))

        hebrew = ["בְּ", "רֵאשִׁ֖ית", "בָּרָ֣א", "אֱלֹהִ֑ים"]
        insert_tokens(conn, "hebrew", [
            {
                "id": f"o0100100100{i}1",
                "ref": f"GEN 1:1!{i}",
                "book_num": "01",
                "book_name": "Genesis",
                "chapter": 1,
                "verse": 1,
                "word_position": i * 10 + 1,
                "text": text,
                "skip_space_after": 1 if i == 1 else 0,
                "lemma": text,
                "strong_number": f"H{i:04d}",
            }
            for i, text in enumerate(hebrew, start=1)
        ])

        greek = ["Οὕτως", "γὰρ", "ἠγάπησεν", "ὁ", "θεὸς", "τὸν", "κόσμον"]
        insert_tokens(conn, "greek", [
            {
                "id": f"n43003016{i:03d}",
                "ref": f"JHN 3:16!{i}",
                "book_num": "43",
                "book_name": "John",
                "chapter": 3,
                "verse": 16,
                "word_position": i,
                "text": text,
                "skip_space_after": 0,
                "lemma": text.lower(),
                "strong": f"G{i}",
                "morph": "X",
            }
            for i, text in enumerate(greek, start=1)
        ])

        conn.commit()
        rebuild_verses(conn)
    finally:
        conn.close()


@pytest.fixture
def catalog():
    return get_catalog()


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "bible.db")
        seed_database(path)
        yield path


@pytest.fixture
def store(db_path):
    return TokenStore(db_path)
