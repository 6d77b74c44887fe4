"""
PromptBuilder
=============
Turns ranked search results into a block appended to the system prompt.

LABELED : grouped by project, each excerpt tagged with section, file and a
          relevance tier (HIGH / MEDIUM / LOW); the model is asked to cite.
TERSE   : bare background text. Small models tend to echo labels verbatim,
          so nothing but the chunk contents is included.

Both variants handle the empty case explicitly because the caller always
concatenates the result onto the base prompt.
"""
from typing import Dict, List, Optional

from ragdocs.retrieval.options import FormatPolicy
from ragdocs.retrieval.search_result import SearchResult

NO_CONTEXT_MESSAGE = (
    "\n\n## Retrieved Documentation\n"
    "No relevant documentation was found for this question. "
    "Say so honestly instead of guessing."
)


class PromptBuilder:
    def __init__(
        self,
        policy: FormatPolicy = FormatPolicy.LABELED,
        subject: Optional[str] = None,
        high: float = 0.55,
        medium: float = 0.40,
    ) -> None:
        if medium > high:
            raise ValueError("medium cutoff must not exceed high cutoff")
        self.policy = FormatPolicy(policy)
        self.subject = subject
        self.high = high
        self.medium = medium

    def relevance_tier(self, score: float) -> str:
        if score >= self.high:
            return "HIGH"
        if score >= self.medium:
            return "MEDIUM"
        return "LOW"

    def format_context(self, results: List[SearchResult]) -> str:
        if self.policy is FormatPolicy.TERSE:
            return self._terse(results)
        return self._labeled(results)

    def build_system_prompt(self, base_prompt: str, results: List[SearchResult]) -> str:
        return base_prompt + self.format_context(results)

    # ---- variants ----
    def _terse(self, results: List[SearchResult]) -> str:
        if not results:
            return ""
        heading = f"Background information about {self.subject}:" if self.subject else "Background information:"
        content = "\n\n".join(r.chunk.content for r in results)
        return f"\n\n---\n{heading}\n\n{content}\n---"

    def _labeled(self, results: List[SearchResult]) -> str:
        if not results:
            return NO_CONTEXT_MESSAGE

        # group by project, keeping first-appearance (i.e. rank) order
        groups: Dict[str, List[SearchResult]] = {}
        for r in results:
            groups.setdefault(r.chunk.project, []).append(r)

        lines = [
            "",
            "",
            "## Retrieved Documentation",
            "Use these excerpts to answer. Cite the project and section you rely on.",
        ]
        for project, items in groups.items():
            lines.append("")
            lines.append(f"### {project}")
            for r in items:
                c = r.chunk
                lines.append("")
                lines.append(f"[{c.section}] ({c.file}, relevance: {self.relevance_tier(r.score)})")
                lines.append(c.content)
        return "\n".join(lines)
