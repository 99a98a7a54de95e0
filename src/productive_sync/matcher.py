"""
Attributes collected activity to bookings through their marker folders
"""

import logging
from dataclasses import dataclass, field

from .models import ProjectMatch, RepoActivity, ResolvedBooking, ServiceFolderMap, SessionActivity
from .service_folders import is_path_within_any_folder

logger = logging.getLogger(__name__)


@dataclass
class BookingMatches:
    booking: ResolvedBooking
    folders: list[str]
    matches: list[ProjectMatch] = field(default_factory=list)

    @property
    def has_folders(self) -> bool:
        return bool(self.folders)

    @property
    def has_activity(self) -> bool:
        return bool(self.matches)


def match_booking(
    booking: ResolvedBooking,
    service_folders: ServiceFolderMap,
    git_activities: list[RepoActivity],
    session_activities: list[SessionActivity],
) -> BookingMatches:
    """
    Git repos and sessions whose path lies in one of the booking's folders

    Each repository is matched at most once (by path), each session at most
    once (by session id).
    """
    folders = service_folders.get(booking.service_id, [])
    result = BookingMatches(booking=booking, folders=folders)

    if not folders:
        logger.warning(
            f"No .productive folder found for booking service_id {booking.service_id} ({booking.service_name})"
        )
        return result

    seen_repos: set[str] = set()
    for repo in git_activities:
        if repo.repo_path in seen_repos or not is_path_within_any_folder(repo.repo_path, folders):
            continue
        seen_repos.add(repo.repo_path)
        result.matches.append(ProjectMatch.for_repo(repo, booking))

    seen_sessions: set[str] = set()
    for session in session_activities:
        if not session.project_path or session.session_id in seen_sessions:
            continue
        if not is_path_within_any_folder(session.project_path, folders):
            continue
        seen_sessions.add(session.session_id)
        result.matches.append(ProjectMatch.for_session(session, booking))

    logger.debug(f"{booking.label}: {len(seen_repos)} repo(s), {len(seen_sessions)} session(s) matched")
    return result
