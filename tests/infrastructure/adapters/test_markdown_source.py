import hashlib

import pytest

from mneme.infrastructure.adapters.markdown_source import (
    MarkdownItemSource,
    card_key,
    iter_flashcards,
    parse_flashcard,
)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("What is 2+2? :: 4", ("What is 2+2?", "4")),
        ("- Capital of France :: Paris", ("Capital of France", "Paris")),
        ("* [ ] term :: definition", ("term", "definition")),
        ("1. first :: one", ("first", "one")),
        ("a :: b :: c", ("a", "b :: c")),
        ("no separator here", None),
        (" :: answer only", None),
        ("question only ::", None),
    ],
)
def test_parse_flashcard(line, expected):
    assert parse_flashcard(line) == expected


def test_iter_flashcards_skips_frontmatter_and_code():
    text = "\n".join(
        [
            "---",
            "title: x :: y",
            "---",
            "# Heading",
            "q1 :: a1",
            "```",
            "code :: not a card",
            "```",
            "q2 :: a2",
        ]
    )
    assert list(iter_flashcards(text)) == [(5, "q1", "a1"), (9, "q2", "a2")]


def test_iter_flashcards_strips_bom():
    assert list(iter_flashcards("\ufeffq :: a")) == [(1, "q", "a")]


def test_card_key_format():
    digest = hashlib.md5(b"q").hexdigest()[:12]
    assert card_key("deck/a.md", "q") == f"deck/a.md#{digest}"


@pytest.fixture
def vault(mock_vault):
    (mock_vault / "deck").mkdir()
    (mock_vault / "deck" / "a.md").write_text("q1 :: a1\nplain text\nq2 :: a2\n")
    (mock_vault / "b.md").write_text("q3 :: a3\nq3 :: again\n")
    (mock_vault / ".hidden").mkdir()
    (mock_vault / ".hidden" / "c.md").write_text("secret :: card\n")
    (mock_vault / "notes.txt").write_text("txt :: ignored\n")
    return mock_vault


@pytest.mark.asyncio
async def test_lists_candidates(vault):
    candidates = await MarkdownItemSource(vault).list_candidates()

    questions = [c.payload.question for c in candidates]
    assert questions == ["q3", "q3", "q1", "q2"]
    assert all(c.card is None for c in candidates)
    assert candidates[2].payload.source == "deck/a.md:1"
    assert candidates[3].payload.source == "deck/a.md:3"


@pytest.mark.asyncio
async def test_duplicate_questions_get_distinct_keys(vault):
    candidates = await MarkdownItemSource(vault).list_candidates()
    keys = [c.key for c in candidates]

    assert len(set(keys)) == len(keys)
    assert keys[1] == keys[0] + "-2"


@pytest.mark.asyncio
async def test_keys_stable_when_answer_changes(vault):
    source = MarkdownItemSource(vault)
    before = [c.key for c in await source.list_candidates()]
    (vault / "deck" / "a.md").write_text("q1 :: changed\nq2 :: a2\n")
    after = [c.key for c in await source.list_candidates()]
    assert before == after


@pytest.mark.asyncio
async def test_scope_by_file_and_folder(vault):
    source = MarkdownItemSource(vault)

    by_file = await source.list_candidates(["b.md"])
    by_folder = await source.list_candidates(["deck"])
    nothing = await source.list_candidates(["missing.md"])

    assert {c.payload.question for c in by_file} == {"q3"}
    assert [c.payload.question for c in by_folder] == ["q1", "q2"]
    assert nothing == []
