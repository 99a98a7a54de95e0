"""
Git activity collector

Runs `git log --shortstat` for the configured author on one day and parses
the output into GitCommit records.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Iterable

from ..models import GitCommit, RepoActivity

logger = logging.getLogger(__name__)

# per-repository git log timeout (seconds)
GIT_LOG_TIMEOUT = 10

_STAT_RE = re.compile(
    r"(\d+) files? changed(?:, (\d+) insertions?\(\+\))?(?:, (\d+) deletions?\(-\))?"
)


class GitLogError(Exception):
    """git log failed or timed out for one repository"""


def parse_git_log(output: str) -> list[GitCommit]:
    """
    Parse `git log --format=%H|%s --shortstat` output

    Each commit starts with `<hash>|<subject>`; the next non-empty line is its
    stat line when it matches the shortstat pattern. Commits without one
    (merges, empty commits) get zero stats.
    """
    commits: list[GitCommit] = []
    lines = output.split("\n")

    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if not line or "|" not in line:
            i += 1
            continue

        full_hash, subject = line.split("|", 1)
        files_changed = insertions = deletions = 0

        i += 1
        while i < len(lines) and not lines[i].strip():
            i += 1

        if i < len(lines):
            match = _STAT_RE.fullmatch(lines[i].strip())
            if match:
                files_changed = int(match.group(1))
                insertions = int(match.group(2) or 0)
                deletions = int(match.group(3) or 0)
                i += 1

        commits.append(GitCommit(
            hash=full_hash[:7],
            subject=subject,
            files_changed=files_changed,
            insertions=insertions,
            deletions=deletions,
        ))

    return commits


def is_git_repo(path: Path) -> bool:
    # .git is a file in worktrees and submodules
    return (path / ".git").exists()


def _subdirs(path: Path) -> list[Path]:
    try:
        return sorted(p for p in path.iterdir() if p.is_dir() and p.name != ".git")
    except OSError:
        return []


def discover_repos(folders: Iterable[str]) -> list[str]:
    """
    Find repositories for the candidate folders

    A folder that is a repository is used as-is; otherwise its children
    and grandchildren are probed.
    """
    repos: list[str] = []

    def add(path: Path):
        repo = str(path)
        if repo not in repos:
            repos.append(repo)

    for folder in folders:
        root = Path(folder)
        if not root.is_dir():
            logger.warning(f"Cannot read folder: {folder}")
            continue
        if is_git_repo(root):
            add(root)
            continue
        for child in _subdirs(root):
            if is_git_repo(child):
                add(child)
                continue
            for grandchild in _subdirs(child):
                if is_git_repo(grandchild):
                    add(grandchild)

    return repos


async def run_git_log(repo_path: str, author: str, date: str, timeout: float = GIT_LOG_TIMEOUT) -> str:
    """Run git log for one repository and return its stdout"""
    args = [
        "git", "log",
        f"--author={author}",
        "--regexp-ignore-case",
        f"--after={date} 00:00:00",
        f"--before={date} 23:59:59",
        "--format=%H|%s",
        "--shortstat",
    ]
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            cwd=repo_path,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise GitLogError(f"cannot run git in {repo_path}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise GitLogError(f"git log timed out after {timeout}s")

    if proc.returncode != 0:
        raise GitLogError(stderr.decode(errors="replace").strip() or f"exit code {proc.returncode}")

    return stdout.decode(errors="replace")


async def collect_git_activity(folders: Iterable[str], author: str, date: str) -> list[RepoActivity]:
    """
    Collect one day of commits by the author

    Args:
        folders: candidate folders (marker folders)
        author: git author name, matched case-insensitively
        date: YYYY-MM-DD

    Returns:
        one RepoActivity per repository with at least one commit
    """
    logger.info(f"Collecting git activity for {author} on {date}")

    repos = await asyncio.to_thread(discover_repos, list(folders))
    logger.info(f"Discovered {len(repos)} git repo(s)")

    activities: list[RepoActivity] = []
    for repo_path in repos:
        try:
            output = await run_git_log(repo_path, author, date)
        except GitLogError as e:
            logger.warning(f"  Failed to get git log from {repo_path}: {e}")
            continue

        commits = parse_git_log(output)
        if commits:
            repo_name = Path(repo_path).name
            activities.append(RepoActivity(repo_name=repo_name, repo_path=repo_path, commits=commits))
            logger.info(f"  {repo_name}: {len(commits)} commit(s)")

    return activities
