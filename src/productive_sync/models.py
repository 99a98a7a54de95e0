"""
Data model shared by the collectors, the matcher and the note composer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class GitCommit:
    """One commit from `git log --shortstat`"""
    hash: str               # 7-character short hash
    subject: str
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0


@dataclass
class RepoActivity:
    """Commits of one repository on the target day"""
    repo_name: str
    repo_path: str
    commits: list[GitCommit] = field(default_factory=list)

    @property
    def files_changed(self) -> int:
        return sum(c.files_changed for c in self.commits)

    @property
    def insertions(self) -> int:
        return sum(c.insertions for c in self.commits)

    @property
    def deletions(self) -> int:
        return sum(c.deletions for c in self.commits)


@dataclass
class SessionActivity:
    """User prompts of one Codex session on the target day"""
    session_id: str
    project_path: Optional[str]
    session_file: str
    summaries: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedBooking:
    """A booking joined with its service, deal and company"""
    booking_id: str
    service_id: str
    service_number: str
    billed_client: Optional[str]
    deal_id: str
    project_id: str
    project_name: str
    service_name: str
    time_minutes: int

    @property
    def label(self) -> str:
        return f"{self.project_name} / {self.service_name}"


class ActivityKind(str, Enum):
    GIT = "git"
    SESSION = "session"


Activity = Union[RepoActivity, SessionActivity]


@dataclass(frozen=True)
class ProjectMatch:
    """Activity attributed to a booking; `kind` tells which activity type it holds"""
    kind: ActivityKind
    activity: Activity
    booking: ResolvedBooking
    match_type: str = "manual"

    @classmethod
    def for_repo(cls, repo: RepoActivity, booking: ResolvedBooking) -> "ProjectMatch":
        return cls(kind=ActivityKind.GIT, activity=repo, booking=booking)

    @classmethod
    def for_session(cls, session: SessionActivity, booking: ResolvedBooking) -> "ProjectMatch":
        return cls(kind=ActivityKind.SESSION, activity=session, booking=booking)


# service id -> folders carrying a marker file with that id
ServiceFolderMap = dict[str, list[str]]
