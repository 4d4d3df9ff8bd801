"""
nob - agentic terminal with autosuggestion and an approval-gated AI loop.

nob runs in one of two modes:
- Manual mode: type shell commands directly, with inline autosuggestion
- AI mode: describe a task in plain language; nob proposes one command at a
  time and runs it only after you approve it
"""

__version__ = "1.0.0"
__author__ = "nob contributors"

from nob.config.schemas import NobConfig

__all__ = [
    "__version__",
    "NobConfig",
]
