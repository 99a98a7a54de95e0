"""Tests for notes module."""

from productive_sync.models import GitCommit, ProjectMatch, RepoActivity, SessionActivity
from productive_sync.notes import (
    MAX_NOTE_LENGTH,
    format_git_section,
    format_notes,
    format_session_section,
    truncate,
)


class TestTruncate:
    """Tests for truncate."""

    def test_short_text_unchanged(self):
        """Test text within the limit."""
        assert truncate("hello", 5) == "hello"

    def test_long_text_gets_ellipsis(self):
        """Test cut text ends with ... and fits the limit."""
        result = truncate("abcdefghij", 8)

        assert result == "abcde..."
        assert len(result) == 8


class TestFormatSections:
    """Tests for the note sections."""

    def test_git_section(self, sample_repo_activity):
        """Test repo header, commit lines and totals."""
        assert format_git_section([sample_repo_activity]) == "\n".join([
            "## Git Activity",
            "**web** (2 commits)",
            "- abc1234 Add login form",
            "- def5678 Fix header",
            "  (4 files changed, +41, -3)",
        ])

    def test_git_section_single_commit_without_stats(self):
        """Test singular label and no totals line."""
        repo = RepoActivity(repo_name="api", repo_path="/api", commits=[GitCommit(hash="1111111", subject="Merge")])

        assert format_git_section([repo]) == "## Git Activity\n**api** (1 commit)\n- 1111111 Merge"

    def test_session_section_deduplicates(self):
        """Test prompts with the same first 100 characters appear once."""
        base = "a" * 100
        first = SessionActivity("s1", "/p", "s1.jsonl", summaries=[base + " first", "Fix bug"])
        second = SessionActivity("s2", "/p", "s2.jsonl", summaries=[base.upper() + " second", "Other work"])

        section = format_session_section([first, second])

        assert section.splitlines() == [
            "## Codex Sessions",
            f"- {base} first",
            "- Fix bug",
            "- Other work",
        ]

    def test_session_summary_truncated(self):
        """Test prompts are cut at 120 characters."""
        session = SessionActivity("s1", "/p", "s1.jsonl", summaries=["x" * 200])

        line = format_session_section([session]).splitlines()[1]

        assert line == "- " + "x" * 117 + "..."


class TestFormatNotes:
    """Tests for format_notes."""

    def test_no_matches(self):
        """Test empty note."""
        assert format_notes([]) == ""

    def test_git_before_sessions(self, sample_booking, sample_repo_activity, sample_session_activity):
        """Test section order regardless of match order."""
        matches = [
            ProjectMatch.for_session(sample_session_activity, sample_booking),
            ProjectMatch.for_repo(sample_repo_activity, sample_booking),
        ]

        note = format_notes(matches)

        assert note.startswith("## Git Activity")
        assert "\n\n## Codex Sessions\n" in note

    def test_overflow_drops_sessions(self, sample_booking, sample_repo_activity):
        """Test sessions are dropped before the note is cut."""
        sessions = [
            SessionActivity(f"s{i}", "/p", f"s{i}.jsonl", summaries=[f"{i:03d} " + "y" * 110])
            for i in range(30)
        ]
        matches = [ProjectMatch.for_repo(sample_repo_activity, sample_booking)]
        matches += [ProjectMatch.for_session(s, sample_booking) for s in sessions]

        note = format_notes(matches)

        assert note == format_git_section([sample_repo_activity])

    def test_sessions_only_overflow_truncated(self, sample_booking):
        """Test a sessions-only note is cut to the limit."""
        sessions = [
            SessionActivity(f"s{i}", "/p", f"s{i}.jsonl", summaries=[f"{i:03d} " + "y" * 110])
            for i in range(30)
        ]

        note = format_notes([ProjectMatch.for_session(s, sample_booking) for s in sessions])

        assert len(note) == MAX_NOTE_LENGTH
        assert note.endswith("...")
        assert note.startswith("## Codex Sessions")

    def test_git_overflow_truncated(self, sample_booking):
        """Test a long git section is cut to the limit."""
        commits = [GitCommit(hash=f"{i:07d}", subject="z" * 80) for i in range(40)]
        repo = RepoActivity(repo_name="big", repo_path="/big", commits=commits)

        note = format_notes([ProjectMatch.for_repo(repo, sample_booking)])

        assert len(note) == MAX_NOTE_LENGTH
        assert note.endswith("...")
