"""
Composes the time entry note from matched activity
"""

from .models import ActivityKind, ProjectMatch, RepoActivity, SessionActivity

MAX_NOTE_LENGTH = 2000
MAX_SUMMARY_LENGTH = 120
DEDUP_KEY_LENGTH = 100


def truncate(text: str, limit: int = MAX_NOTE_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def format_git_section(activities: list[RepoActivity]) -> str:
    lines = ["## Git Activity"]

    for repo in activities:
        count = len(repo.commits)
        lines.append(f"**{repo.repo_name}** ({count} commit{'' if count == 1 else 's'})")
        for commit in repo.commits:
            lines.append(f"- {commit.hash} {commit.subject}")
        if repo.files_changed > 0:
            lines.append(f"  ({repo.files_changed} files changed, +{repo.insertions}, -{repo.deletions})")

    return "\n".join(lines)


def format_session_section(activities: list[SessionActivity]) -> str:
    lines = ["## Codex Sessions"]
    seen: set[str] = set()

    for session in activities:
        for summary in session.summaries:
            key = summary[:DEDUP_KEY_LENGTH].lower()
            if key in seen:
                continue
            seen.add(key)
            lines.append(f"- {truncate(summary, MAX_SUMMARY_LENGTH)}")

    return "\n".join(lines)


def format_notes(matches: list[ProjectMatch]) -> str:
    """
    Render matched activity as a note of at most MAX_NOTE_LENGTH characters

    Git activity comes first. On overflow the session section is dropped,
    and only then is the text cut.
    """
    git = [m.activity for m in matches if m.kind is ActivityKind.GIT]
    sessions = [m.activity for m in matches if m.kind is ActivityKind.SESSION]

    sections = []
    if git:
        sections.append(format_git_section(git))
    if sessions:
        sections.append(format_session_section(sessions))
    if not sections:
        return ""

    note = "\n\n".join(sections)
    if len(note) > MAX_NOTE_LENGTH and git:
        note = format_git_section(git)
    return truncate(note)
