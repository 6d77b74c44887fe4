"""
DocumentLoader
==============
Discovers the markdown documentation that feeds the embeddings file:

- portfolio/<project>/*.md   project label = sub-folder name
- personal/*.md              project label = owner name
- blog/*.md                  project label = "Blog"

Missing folders are reported and skipped; discovery never raises for them.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ragdocs.utils.logging import SimpleLogger

BLOG_PROJECT = "Blog"


@dataclass(frozen=True)
class SourceFile:
    project: str
    file: str
    path: Path


class DocumentLoader:
    """Scans the documentation folders and reads markdown sources."""

    def __init__(
        self,
        portfolio_dir: Optional[Path],
        personal_dir: Optional[Path] = None,
        blog_dir: Optional[Path] = None,
        owner_name: str = "Owner",
    ) -> None:
        self.portfolio_dir = portfolio_dir
        self.personal_dir = personal_dir
        self.blog_dir = blog_dir
        self.owner_name = owner_name

    def discover(self) -> List[SourceFile]:
        """Return every markdown source, portfolio first, then personal, then blog."""
        files: List[SourceFile] = []
        files.extend(self._portfolio_files())
        files.extend(self._flat_files(self.personal_dir, self.owner_name, "Personal"))
        files.extend(self._flat_files(self.blog_dir, BLOG_PROJECT, "Blog"))
        return files

    @staticmethod
    def read(source: SourceFile) -> str:
        try:
            return source.path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            # Fallback: latin-1 never fails to decode
            return source.path.read_text(encoding="latin-1")

    # ---- helpers ----
    def _portfolio_files(self) -> List[SourceFile]:
        root = self.portfolio_dir
        if not _is_dir(root, "Portfolio"):
            return []
        files: List[SourceFile] = []
        for project_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            for md in _markdown_in(project_dir):
                files.append(SourceFile(project=project_dir.name, file=md.name, path=md))
        return files

    @staticmethod
    def _flat_files(root: Optional[Path], project: str, label: str) -> List[SourceFile]:
        if not _is_dir(root, label):
            return []
        return [SourceFile(project=project, file=md.name, path=md) for md in _markdown_in(root)]


def _is_dir(path: Optional[Path], label: str) -> bool:
    if path is None:
        return False
    if not path.is_dir():
        SimpleLogger.info(f"{label} directory does not exist: {path}")
        return False
    return True


def _markdown_in(folder: Path) -> List[Path]:
    return sorted(p for p in folder.iterdir() if p.is_file() and p.name.endswith(".md"))
