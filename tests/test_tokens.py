import threading

import pytest

from bowtext.tokens import TokenTable, TokenFileError

OFFSET = 1  # default offset


@pytest.fixture
def tokens():
    return TokenTable()


# ── get ─────────────────────────────────────────────────────────
def test_new_tokens_get_sequential_ids(tokens):
    assert tokens.get("bar") == OFFSET
    assert tokens.get("foo") == OFFSET + 1


def test_existing_token_keeps_its_id_and_counts(tokens):
    tokens.get("bar")
    assert tokens.get("bar") == OFFSET
    assert tokens.get("bar") == OFFSET
    assert tokens.count("bar") == 3


def test_blank_token_is_ignored(tokens):
    assert tokens.get("") is None
    assert tokens.get("   ") is None
    assert tokens.get(None) is None
    assert len(tokens) == 0
    assert tokens.next_id == OFFSET


def test_prefix_namespaces_tokens(tokens):
    plain = tokens.get("bar")
    prefixed = tokens.get("bar", prefix="XyZ$")
    assert plain != prefixed
    assert tokens.get("XyZ$bar") == prefixed


def test_prefix_does_not_affect_numbering():
    tokens = TokenTable(offset=3)
    assert tokens.get("a1", prefix="p:") == 3
    assert tokens.get("b1") == 4
    assert tokens.get("c1", prefix="q:") == 5


def test_frozen_returns_known_ids_only(tokens):
    tokens.get("blup")
    tokens.freeze()
    assert tokens.get("blup") == OFFSET
    assert tokens.get("blabla") is None
    assert "blabla" not in tokens


def test_frozen_never_counts(tokens):
    tokens.get("blup")
    tokens.freeze()
    for _ in range(3):
        tokens.get("blup")
    assert tokens.count("blup") == 1
    assert tokens.next_id == OFFSET + 1


def test_concurrent_gets_assign_unique_ids(tokens):
    words = [f"w{i}" for i in range(200)]

    def worker():
        for w in words:
            tokens.get(w)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(tokens.indexes()) == list(range(OFFSET, OFFSET + 200))
    assert all(n == 8 for _, _, n in tokens.items())


# ── find / indexes ──────────────────────────────────────────────
def test_find_existing_token(tokens):
    tokens.get("blup")
    i = tokens.get("blah")
    assert tokens.find(i) == "blah"


def test_find_missing_token(tokens):
    tokens.get("blup")
    assert tokens.find(OFFSET + 1) is None


def test_find_with_prefix(tokens):
    tokens.get("bar")
    i = tokens.get("bar", prefix="XyZ$")
    assert tokens.find(i) == "XyZ$bar"
    assert tokens.find(i, prefix="XyZ$") == "bar"
    assert tokens.find(OFFSET, prefix="XyZ$") is None


def test_indexes(tokens):
    assert tokens.indexes() == []
    tokens.get("foo")
    tokens.get("blup")
    assert tokens.indexes() == [OFFSET, OFFSET + 1]


# ── offset / frozen state ───────────────────────────────────────
def test_offset_default_and_override():
    assert TokenTable().offset == OFFSET
    assert TokenTable(offset=5).offset == 5
    assert TokenTable(offset=12).get("hi") == 12


def test_negative_offset_rejected():
    with pytest.raises(ValueError):
        TokenTable(offset=-1)


def test_freeze_and_thaw(tokens):
    assert tokens.frozen is False
    tokens.freeze()
    assert tokens.frozen is True
    tokens.thaw()
    assert tokens.frozen is False


# ── limit ───────────────────────────────────────────────────────
def test_limit_by_size_keeps_most_frequent(tokens):
    tokens.get("foo")
    tokens.get("blup")
    tokens.get("blup")
    assert tokens.limit(max_size=1) == 1
    assert tokens.indexes() == [OFFSET + 1]


def test_limit_by_occurrence(tokens):
    tokens.get("foo")
    tokens.get("blup")
    tokens.get("foo")
    assert tokens.limit(occurrence=2) == 1
    assert tokens.indexes() == [OFFSET]


def test_limit_applies_occurrence_before_size(tokens):
    for word, n in [("a1", 1), ("b1", 3), ("c1", 2), ("d1", 2)]:
        for _ in range(n):
            tokens.get(word)
    assert tokens.limit(max_size=2, occurrence=2) == 2
    assert tokens.indexes() == [OFFSET + 1, OFFSET + 2]


def test_limit_ties_keep_table_order(tokens):
    for word in ["x1", "y1", "z1"]:
        tokens.get(word)
    tokens.limit(max_size=2)
    assert tokens.indexes() == [OFFSET, OFFSET + 1]


def test_limit_never_reuses_ids(tokens):
    tokens.get("foo")
    tokens.get("bar")
    tokens.limit(max_size=0)
    assert len(tokens) == 0
    assert tokens.get("baz") == OFFSET + 2


def test_limit_works_while_frozen(tokens):
    tokens.get("foo")
    tokens.get("bar")
    tokens.get("bar")
    tokens.freeze()
    assert tokens.limit(occurrence=2) == 1
    assert tokens.frozen


def test_limit_rejects_negative_values(tokens):
    with pytest.raises(ValueError):
        tokens.limit(max_size=-1)
    with pytest.raises(ValueError):
        tokens.limit(occurrence=-1)


# ── save / load ─────────────────────────────────────────────────
def test_save_format(tokens, tmp_path):
    tokens.get("foo")
    tokens.get("bar")
    tokens.get("bar")
    path = tmp_path / "tokens.txt"
    tokens.save(path)
    assert path.read_text(encoding="utf-8") == "1 1 foo\n2 2 bar\n"


def test_save_and_load_round_trip(tokens, tmp_path):
    tokens.get("foo")
    tokens.get("bar")
    tokens.get("bar")
    tokens.get("zoo", prefix="XyZ$")
    path = tmp_path / "tokens.txt"
    tokens.save(path)

    loaded = TokenTable()
    loaded.load(path)
    assert loaded.items() == tokens.items()
    assert loaded.frozen
    assert loaded.get("bar") == OFFSET + 1
    assert loaded.get("nope") is None


def test_carriage_return_in_key_round_trips(tokens, tmp_path):
    tokens.get("a\rb")
    tokens.get("c1")
    path = tmp_path / "tokens.txt"
    tokens.save(path)
    assert path.read_bytes() == b"1 1 a\rb\n2 1 c1\n"

    loaded = TokenTable.from_file(path)
    assert loaded.items() == [("a\rb", 1, 1), ("c1", 2, 1)]
    assert loaded.get("a\rb") == OFFSET


def test_save_unwritable_path(tokens, tmp_path):
    tokens.get("foo")
    with pytest.raises(OSError):
        tokens.save(tmp_path / "missing" / "tokens.txt")


def test_load_replaces_content_and_freezes(tokens, tmp_path):
    path = tmp_path / "tokens.txt"
    path.write_text("7 3 hello\n", encoding="utf-8")
    tokens.get("old")
    tokens.load(path)
    assert tokens.items() == [("hello", 7, 3)]
    assert tokens.frozen


def test_load_keeps_spaces_inside_key(tmp_path):
    path = tmp_path / "tokens.txt"
    path.write_text("1 2 new  york\n\n2 1   spaced \n", encoding="utf-8")
    tokens = TokenTable.from_file(path)
    assert tokens.find(1) == "new  york"
    assert tokens.find(2) == "spaced"


def test_load_moves_next_id_past_loaded_ids(tmp_path):
    path = tmp_path / "tokens.txt"
    path.write_text("1 1 foo\n9 1 bar\n", encoding="utf-8")
    tokens = TokenTable.from_file(path)
    tokens.thaw()
    assert tokens.get("baz") == 10


def test_load_missing_file(tokens, tmp_path):
    with pytest.raises(FileNotFoundError):
        tokens.load(tmp_path / "missing.txt")


def test_load_malformed_line_leaves_table_untouched(tokens, tmp_path):
    path = tmp_path / "tokens.txt"
    path.write_text("1 1 foo\nbroken\n", encoding="utf-8")
    tokens.get("keep")
    with pytest.raises(TokenFileError, match=":2:"):
        tokens.load(path)
    assert tokens.items() == [("keep", 1, 1)]
    assert not tokens.frozen


def test_load_non_integer_fields(tokens, tmp_path):
    path = tmp_path / "tokens.txt"
    path.write_text("x 1 foo\n", encoding="utf-8")
    with pytest.raises(TokenFileError):
        tokens.load(path)
