"""
Markdown ItemSource.

Scans a notes directory for flashcard lines of the form

    question :: answer

List markers are ignored, as are YAML frontmatter and fenced code blocks.
Each card is keyed by its file path relative to the root plus a short
hash of the question, so keys survive edits to the answer and reordering
of lines.
"""

import hashlib
import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from mneme.domain.constants import FLASHCARD_SEPARATOR, KEY_HASH_LEN
from mneme.domain.models import Candidate, Flashcard
from mneme.domain.ports import ItemSource

logger = logging.getLogger(__name__)

_LIST_MARKER = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(?:\[[ xX]\]\s+)?")


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Markdown files under root in a stable order, skipping hidden directories."""
    for path in sorted(root.rglob("*.md")):
        rel_parts = path.relative_to(root).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        if path.is_file():
            yield path


def parse_flashcard(line: str) -> tuple[str, str] | None:
    """Split a line into (question, answer), or None if it is not a flashcard."""
    text = _LIST_MARKER.sub("", line, count=1)
    idx = text.find(FLASHCARD_SEPARATOR)
    if idx == -1:
        return None
    question = text[:idx].strip()
    answer = text[idx + len(FLASHCARD_SEPARATOR) :].strip()
    if not question or not answer:
        return None
    return question, answer


def iter_flashcards(text: str) -> Iterator[tuple[int, str, str]]:
    """Yield (line number, question, answer) for every flashcard line in text."""
    lines = text.lstrip("\ufeff").split("\n")
    start = 0
    if lines and lines[0].strip() == "---":
        for i, line in enumerate(lines[1:], start=1):
            if line.strip() == "---":
                start = i + 1
                break

    in_fence = False
    for number, line in enumerate(lines[start:], start=start + 1):
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        parsed = parse_flashcard(line)
        if parsed:
            yield number, parsed[0], parsed[1]


def card_key(relative_path: str, question: str) -> str:
    digest = hashlib.md5(question.encode("utf-8")).hexdigest()[:KEY_HASH_LEN]
    return f"{relative_path}#{digest}"


def _in_scope(relative_path: str, scope: set[str] | None) -> bool:
    if scope is None:
        return True
    for item in scope:
        prefix = item.strip("/")
        if relative_path == prefix or relative_path.startswith(prefix + "/"):
            return True
    return False


class MarkdownItemSource(ItemSource):
    def __init__(self, root: Path):
        self.root = Path(root)

    async def list_candidates(self, scope: Iterable[str] | None = None) -> list[Candidate]:
        wanted = {str(s).replace("\\", "/") for s in scope} if scope is not None else None
        candidates: list[Candidate] = []

        for path in iter_markdown_files(self.root):
            rel = path.relative_to(self.root).as_posix()
            if not _in_scope(rel, wanted):
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"[markdown] Skipping {rel}: {e}")
                continue

            seen: dict[str, int] = {}
            for line_no, question, answer in iter_flashcards(text):
                key = card_key(rel, question)
                seen[key] = seen.get(key, 0) + 1
                if seen[key] > 1:
                    key = f"{key}-{seen[key]}"
                candidates.append(
                    Candidate(
                        key=key,
                        payload=Flashcard(question=question, answer=answer, source=f"{rel}:{line_no}"),
                    )
                )

        logger.debug(f"[markdown] Found {len(candidates)} flashcards under {self.root}")
        return candidates
