"""
Chunker
=======
Splits markdown documents into semantic chunks for embedding.

Sections start at `##` / `###` headings; text before the first heading belongs
to "Introduction". Sections are packed paragraph by paragraph into chunks of at
most `max_tokens` estimated tokens. Fenced code blocks are never split: an
oversized block becomes a chunk of its own.
"""

import math
import re
from typing import Dict, List, Tuple

from ragdocs.retrieval.chunk import Chunk

MAX_TOKENS = 500
INTRODUCTION = "Introduction"

_HEADING_RE = re.compile(r"^#{2,3}\s+(.+)$")
_FENCE = "```"


def estimate_tokens(text: str) -> int:
    """Rough token count: ceil(chars / 4)."""
    return math.ceil(len(text) / 4)


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def _is_fence(line: str) -> bool:
    return line.strip().startswith(_FENCE)


def parse_sections(content: str) -> List[Tuple[str, str]]:
    """
    Split markdown into (heading, body) pairs.

    Headings inside fenced code are literal text. Sections whose body is empty
    after trimming are dropped, so consecutive headings collapse onto the last one.
    """
    sections: List[Tuple[str, str]] = []
    heading = INTRODUCTION
    lines: List[str] = []
    in_code = False

    for line in content.split("\n"):
        if _is_fence(line):
            in_code = not in_code
            lines.append(line)
            continue

        match = None if in_code else _HEADING_RE.match(line)
        if match:
            body = "\n".join(lines).strip()
            if body:
                sections.append((heading, body))
            heading = match.group(1).strip()
            lines = []
        else:
            lines.append(line)

    body = "\n".join(lines).strip()
    if body:
        sections.append((heading, body))
    return sections


def split_paragraphs(content: str) -> List[str]:
    """Split at blank lines outside code fences; a fenced block is one paragraph."""
    paragraphs: List[str] = []
    current: List[str] = []
    in_code = False

    def flush() -> None:
        text = "\n".join(current).strip()
        if text:
            paragraphs.append(text)
        current.clear()

    for line in content.split("\n"):
        if _is_fence(line):
            if in_code:
                current.append(line)
                paragraphs.append("\n".join(current))
                current.clear()
                in_code = False
            else:
                flush()
                current.append(line)
                in_code = True
        elif in_code:
            current.append(line)
        elif line.strip() == "":
            flush()
        else:
            current.append(line)

    flush()
    return paragraphs


class MarkdownChunker:
    """Heading-aware, token-bounded markdown splitter."""

    def __init__(self, max_tokens: int = MAX_TOKENS) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        self.max_tokens = max_tokens

    def split(self, content: str, project: str, file: str) -> List[Chunk]:
        """
        Chunk one document.

        :param content: raw markdown text
        :param project: grouping label stored on every chunk (also the id prefix)
        :param file: source file name stored on every chunk
        :return: chunks in document order; empty for blank input
        """
        id_counts: Dict[str, int] = {}
        chunks: List[Chunk] = []
        for heading, body in parse_sections(content):
            chunks.extend(self._split_section(body, project, file, heading, id_counts))
        return chunks

    def _split_section(
        self,
        body: str,
        project: str,
        file: str,
        section: str,
        id_counts: Dict[str, int],
    ) -> List[Chunk]:
        chunks: List[Chunk] = []
        pending: List[str] = []
        pending_tokens = 0

        def emit(text: str) -> None:
            chunks.append(Chunk(
                id=self._next_id(project, section, id_counts),
                project=project,
                file=file,
                section=section,
                content=text,
            ))

        for paragraph in split_paragraphs(body):
            tokens = estimate_tokens(paragraph)

            if tokens > self.max_tokens:
                if pending:
                    emit("\n\n".join(pending))
                    pending, pending_tokens = [], 0
                emit(paragraph)
                continue

            if pending and pending_tokens + tokens > self.max_tokens:
                emit("\n\n".join(pending))
                pending, pending_tokens = [], 0

            pending.append(paragraph)
            pending_tokens += tokens

        if pending:
            emit("\n\n".join(pending))
        return chunks

    @staticmethod
    def _next_id(project: str, section: str, id_counts: Dict[str, int]) -> str:
        base = f"{slugify(project)}-{slugify(section)}"
        count = id_counts.get(base, 0)
        id_counts[base] = count + 1
        return base if count == 0 else f"{base}-{count + 1}"


def chunk_markdown(content: str, project: str, file: str, max_tokens: int = MAX_TOKENS) -> List[Chunk]:
    """Functional entry point; see MarkdownChunker.split."""
    return MarkdownChunker(max_tokens=max_tokens).split(content, project, file)
