"""Local activity sources: git history and Codex session logs."""

from .git import collect_git_activity, parse_git_log, GitLogError
from .codex_sessions import collect_codex_activity, CodexSessionParser

__all__ = [
    "collect_git_activity",
    "parse_git_log",
    "GitLogError",
    "collect_codex_activity",
    "CodexSessionParser",
]
