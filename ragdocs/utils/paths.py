"""
Paths
=====
Default on-disk locations for documentation sources and the embeddings file.
`from ragdocs.utils.paths import PATHS` gives typed access; every entry can be
overridden through Settings (see ragdocs/config/settings.py).
"""
from pathlib import Path
from typing import TypedDict

class _Paths(TypedDict):
    root:        Path
    data:        Path
    portfolio:   Path
    personal:    Path
    blog:        Path
    embeddings:  Path

ROOT = Path(__file__).resolve().parents[2]

PATHS: _Paths = {
    "root":        ROOT,
    "data":        ROOT / "data",
    "portfolio":   ROOT / "data" / "portfolio",    # one sub-folder per project
    "personal":    ROOT / "data" / "personal",
    "blog":        ROOT / "data" / "blog",
    "embeddings":  ROOT / "data" / "rag" / "embeddings.json",
}
