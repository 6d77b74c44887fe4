# -*- coding: utf-8 -*-
import pytest

from ragdocs.ingestion.chunker import (
    MarkdownChunker,
    chunk_markdown,
    estimate_tokens,
    parse_sections,
    slugify,
    split_paragraphs,
)

FENCE = "```"


class TestEstimateTokens:
    def test_chars_over_four(self):
        assert estimate_tokens("test") == 1
        assert estimate_tokens("hello world") == 3
        assert estimate_tokens("") == 0

    def test_rounds_up(self):
        assert estimate_tokens("ab") == 1
        assert estimate_tokens("abc") == 1
        assert estimate_tokens("abcde") == 2

    def test_monotonic(self):
        counts = [estimate_tokens("x" * n) for n in range(50)]
        assert counts == sorted(counts)


class TestSlugify:
    @pytest.mark.parametrize("text,expected", [
        ("System Overview", "system-overview"),
        ("Data Flow & Processing!", "data-flow-processing"),
        ("My-Project_123", "my-project123"),
        ("  --Leading and trailing--  ", "leading-and-trailing"),
        ("a   -  b", "a-b"),
    ])
    def test_slugify(self, text, expected):
        assert slugify(text) == expected


class TestSections:
    def test_splits_on_h2(self):
        content = "## Section One\nThis is content for section one.\n\n## Section Two\nThis is content for section two."
        chunks = chunk_markdown(content, "TestProject", "test.md")
        assert [c.section for c in chunks] == ["Section One", "Section Two"]

    def test_splits_on_h3(self):
        content = "### Subsection A\nContent A.\n\n### Subsection B\nContent B."
        chunks = chunk_markdown(content, "TestProject", "test.md")
        assert [c.section for c in chunks] == ["Subsection A", "Subsection B"]

    def test_h1_and_h4_are_not_section_breaks(self):
        content = "# Title\nIntro.\n\n#### Deep\nMore."
        chunks = chunk_markdown(content, "P", "f.md")
        assert len(chunks) == 1
        assert chunks[0].section == "Introduction"

    def test_text_before_first_heading_is_introduction(self):
        content = "Some intro text here.\n\n## First Section\nSection content."
        chunks = chunk_markdown(content, "TestProject", "test.md")
        assert len(chunks) == 2
        assert chunks[0].section == "Introduction"
        assert chunks[0].content == "Some intro text here."
        assert chunks[1].section == "First Section"

    def test_no_headings(self):
        chunks = chunk_markdown("Just some content.\nMultiple lines of text.", "TestProject", "test.md")
        assert len(chunks) == 1
        assert chunks[0].section == "Introduction"

    def test_single_short_section(self):
        chunks = chunk_markdown("## System Overview\nShort text.", "AHSR", "architecture.md")
        assert len(chunks) == 1
        assert chunks[0].section == "System Overview"
        assert chunks[0].content == "Short text."

    def test_consecutive_headings_collapse_to_last(self):
        chunks = chunk_markdown("## First\n## Second\n## Third\nContent here.", "TestProject", "test.md")
        assert len(chunks) == 1
        assert chunks[0].section == "Third"

    def test_heading_with_no_content(self):
        chunks = chunk_markdown("## Empty Section\n\n## Another Section\nWith content.", "TestProject", "test.md")
        assert len(chunks) == 1
        assert chunks[0].section == "Another Section"

    def test_heading_text_is_trimmed(self):
        assert parse_sections("##   Padded Title   \nbody") == [("Padded Title", "body")]


class TestIds:
    def test_slug_based_id(self):
        chunks = chunk_markdown("## System Overview\nSome content.", "AHSR", "architecture.md")
        assert chunks[0].id == "ahsr-system-overview"

    def test_special_characters(self):
        chunks = chunk_markdown("## Data Flow & Processing!\nSome content.", "My-Project_123", "test.md")
        assert chunks[0].id == "my-project123-data-flow-processing"

    def test_duplicate_headings_get_suffixes(self):
        content = (
            "## Overview\nFirst.\n\n## Details\nSome details.\n\n"
            "## Overview\nSecond.\n\n## Overview\nThird."
        )
        ids = [c.id for c in chunk_markdown(content, "TestProject", "test.md") if c.section == "Overview"]
        assert ids == ["testproject-overview", "testproject-overview-2", "testproject-overview-3"]

    def test_counter_is_per_invocation(self):
        content = "## Overview\nText."
        first = chunk_markdown(content, "P", "a.md")
        second = chunk_markdown(content, "P", "b.md")
        assert first[0].id == second[0].id == "p-overview"

    def test_split_section_shares_counter(self):
        para = "word " * 300  # ~375 tokens each
        content = f"## Big\n{para}\n\n{para}\n\n{para}"
        ids = [c.id for c in chunk_markdown(content, "P", "f.md")]
        assert ids == ["p-big", "p-big-2", "p-big-3"]

    def test_metadata(self):
        chunks = chunk_markdown("## Test Section\nSome content.", "MyProject", "docs.md")
        assert chunks[0].project == "MyProject"
        assert chunks[0].file == "docs.md"


class TestCodeBlocks:
    def test_code_block_kept_whole(self):
        content = (
            "## Code Example\n\nHere is some code:\n\n"
            f"{FENCE}typescript\nfunction hello() {{\n\n  console.log(\"Hello\");\n}}\n{FENCE}\n\n"
            "And some text after."
        )
        chunks = chunk_markdown(content, "TestProject", "test.md")
        code = [c for c in chunks if f"{FENCE}typescript" in c.content]
        assert len(code) == 1
        assert "function hello()" in code[0].content
        assert "console.log" in code[0].content

    def test_hash_lines_inside_code_are_not_headings(self):
        content = f"## Main Section\n\n{FENCE}bash\n# comment\n## Not a heading\necho \"test\"\n{FENCE}\n\nMore content."
        chunks = chunk_markdown(content, "TestProject", "test.md")
        assert {c.section for c in chunks} == {"Main Section"}
        assert "## Not a heading" in chunks[0].content

    def test_oversized_code_block_is_own_chunk(self):
        long_code = 'const line = "some code here";' * 80
        block = f"{FENCE}typescript\n{long_code}\n{FENCE}"
        content = f"## Code Section\n\nIntro paragraph.\n\n{block}\n\nOutro paragraph."
        chunks = chunk_markdown(content, "TestProject", "test.md")
        assert [c.content for c in chunks] == ["Intro paragraph.", block, "Outro paragraph."]
        assert estimate_tokens(chunks[1].content) > 500

    def test_every_chunk_has_balanced_fences(self):
        block = f"{FENCE}python\n" + "x = 1\n\n" * 400 + FENCE
        content = "## A\n" + "\n\n".join(["para " * 50, block, "para " * 50, block])
        for chunk in chunk_markdown(content, "P", "f.md"):
            fences = [l for l in chunk.content.split("\n") if l.strip().startswith(FENCE)]
            assert len(fences) % 2 == 0

    def test_split_paragraphs_keeps_blank_lines_inside_fence(self):
        body = f"before\n\n{FENCE}\na\n\nb\n{FENCE}\nafter"
        assert split_paragraphs(body) == ["before", f"{FENCE}\na\n\nb\n{FENCE}", "after"]


class TestPacking:
    def test_large_section_splits_at_paragraphs(self):
        p1 = "First paragraph. " * 100
        p2 = "Second paragraph. " * 100
        chunks = chunk_markdown(f"## Large Section\n\n{p1}\n\n{p2}", "TestProject", "test.md")
        assert len(chunks) >= 2
        assert all(c.section == "Large Section" for c in chunks)

    def test_small_paragraphs_are_packed_together(self):
        chunks = chunk_markdown("## S\nOne.\n\nTwo.\n\nThree.", "P", "f.md")
        assert len(chunks) == 1
        assert chunks[0].content == "One.\n\nTwo.\n\nThree."

    def test_packed_chunks_respect_budget(self):
        paras = ["word " * 60 for _ in range(30)]  # 75 tokens each
        chunks = chunk_markdown("## S\n" + "\n\n".join(paras), "P", "f.md")
        assert len(chunks) > 1
        assert all(estimate_tokens(c.content) <= 500 + 2 * 6 for c in chunks)

    def test_custom_budget(self):
        chunks = MarkdownChunker(max_tokens=5).split("## S\naaaa bbbb\n\ncccc dddd", "P", "f.md")
        assert [c.content for c in chunks] == ["aaaa bbbb", "cccc dddd"]

    def test_invalid_budget(self):
        with pytest.raises(ValueError):
            MarkdownChunker(max_tokens=0)

    def test_content_is_preserved(self):
        content = "Intro.\n\n## A\nalpha one\n\nalpha two\n\n## B\nbeta"
        by_section = {}
        for c in chunk_markdown(content, "P", "f.md"):
            by_section.setdefault(c.section, []).append(c.content)
        assert {k: "\n\n".join(v) for k, v in by_section.items()} == dict(parse_sections(content))


class TestEdgeCases:
    def test_empty(self):
        assert chunk_markdown("", "TestProject", "test.md") == []

    def test_whitespace_only(self):
        assert chunk_markdown("   \n\n   ", "TestProject", "test.md") == []

    def test_unterminated_fence(self):
        chunks = chunk_markdown(f"## S\ntext\n\n{FENCE}\ncode\n\n## fake", "P", "f.md")
        assert len(chunks) == 1
        assert "## fake" in chunks[0].content

    def test_realistic_document(self):
        content = (
            "## System Overview\n\nThe AHSR system provides a hybrid RAG architecture.\n\n"
            "Key components:\n- Document chunking pipeline\n- Vector embeddings store\n\n"
            "## Technical Stack\n\n- **Frontend**: Astro + React\n\n"
            f"{FENCE}typescript\n// Example embedding call\nconst embedding = await model.embed(chunk);\n{FENCE}\n\n"
            "## Data Flow\n\n1. User asks a question\n2. Question is embedded"
        )
        chunks = chunk_markdown(content, "AHSR", "architecture.md")
        assert [c.id for c in chunks] == ["ahsr-system-overview", "ahsr-technical-stack", "ahsr-data-flow"]
        assert f"{FENCE}typescript" in chunks[1].content
