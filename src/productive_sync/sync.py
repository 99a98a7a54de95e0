"""
Daily sync pipeline

bookings -> marker folders -> git + Codex activity (concurrently) -> per
booking: match, compose note, refine, confirm, submit. The per-booking loop
is strictly sequential.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from openai import AsyncOpenAI

from .bookings import fetch_bookings
from .collectors import collect_codex_activity, collect_git_activity
from .config import Config
from .llm_helper import refine_note
from .matcher import match_booking
from .models import ResolvedBooking
from .notes import format_notes
from .productive_api import ProductiveClient, SubmitOutcome, TimeEntry, TimeEntryUploader
from .service_folders import all_folders, count_folders, discover_service_folders

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    SUBMIT = "submit"
    SKIP = "skip"
    CANCEL = "cancel"


# (booking, note) -> (decision, possibly edited note)
Confirmer = Callable[[ResolvedBooking, str], tuple[Decision, str]]


@dataclass
class RunSummary:
    """Counters accumulated over one run"""
    date: str
    bookings: int = 0
    service_ids: int = 0
    mapped_folders: int = 0
    git_repos: int = 0
    codex_sessions: int = 0
    without_folders: int = 0
    without_activity: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def exit_code(self) -> int:
        return 1 if self.failed > 0 else 0

    def log(self):
        logger.info("--- Summary ---")
        logger.info(f"Bookings: {self.bookings}")
        logger.info(f"Service IDs with .productive folders: {self.service_ids}")
        logger.info(f"Folders with .productive: {self.mapped_folders}")
        logger.info(f"Git repos with activity: {self.git_repos}")
        logger.info(f"Codex sessions with activity: {self.codex_sessions}")
        logger.info(f"Bookings without mapped folders: {self.without_folders}")
        logger.info(f"Bookings with no activity: {self.without_activity}")
        if self.cancelled:
            logger.warning("Run ended early due to user cancellation.")
        logger.info(f"Created: {self.created}, Skipped: {self.skipped}, Failed: {self.failed}")


class SyncRunner:
    """Runs the pipeline for one person and one day"""

    def __init__(
        self,
        config: Config,
        client: Optional[ProductiveClient] = None,
        confirmer: Optional[Confirmer] = None,
        llm_client: Optional[AsyncOpenAI] = None,
    ):
        self.config = config
        self.client = client or ProductiveClient(config.credentials)
        self.uploader = TimeEntryUploader(self.client)
        self.confirmer = confirmer
        self.llm_client = llm_client

    async def run(self) -> RunSummary:
        config = self.config
        summary = RunSummary(date=config.date)
        logger.info(f"productive-sync starting for {config.date}{' (CONFIRM)' if config.confirm else ''}")

        bookings = await asyncio.to_thread(fetch_bookings, self.client, config.productive_person_id, config.date)
        summary.bookings = len(bookings)
        if not bookings:
            logger.info("No bookings found - nothing to do")
            return summary

        service_folders = await asyncio.to_thread(discover_service_folders, config.scan_dirs)
        summary.service_ids = len(service_folders)
        summary.mapped_folders = count_folders(service_folders)
        logger.info(
            f"Found {summary.mapped_folders} folder(s) with .productive across {summary.service_ids} service id(s)"
        )

        git_activities, codex_activities = await asyncio.gather(
            collect_git_activity(all_folders(service_folders), config.git_author_name, config.date),
            collect_codex_activity(config.codex_sessions_dir, list(config.scan_dirs), config.date),
        )
        summary.git_repos = len(git_activities)
        summary.codex_sessions = len(codex_activities)

        for booking in bookings:
            result = match_booking(booking, service_folders, git_activities, codex_activities)
            if not result.has_folders:
                summary.without_folders += 1
            if not result.has_activity:
                summary.without_activity += 1

            note = await refine_note(
                format_notes(result.matches),
                booking.project_name,
                config.llm,
                self.llm_client,
            )

            if config.confirm and self.confirmer:
                decision, note = self.confirmer(booking, note)
                if decision is Decision.SKIP:
                    summary.skipped += 1
                    logger.info(f"  Skipping {booking.label} by user choice")
                    continue
                if decision is Decision.CANCEL:
                    summary.cancelled = True
                    logger.warning("Submission cancelled by user.")
                    break

            outcome = await asyncio.to_thread(self.submit, booking, note)
            if outcome is SubmitOutcome.CREATED:
                summary.created += 1
            elif outcome is SubmitOutcome.DUPLICATE:
                summary.skipped += 1
            else:
                summary.failed += 1

        return summary

    def submit(self, booking: ResolvedBooking, note: str) -> SubmitOutcome:
        entry = TimeEntry(
            person_id=self.config.productive_person_id,
            service_id=booking.service_id,
            date=self.config.date,
            time_minutes=booking.time_minutes,
            note=note,
        )
        return self.uploader.upload(entry, label=booking.label)


def run_sync(
    config: Config,
    client: Optional[ProductiveClient] = None,
    confirmer: Optional[Confirmer] = None,
    llm_client: Optional[AsyncOpenAI] = None,
) -> RunSummary:
    """Run the pipeline to completion and log its summary"""
    runner = SyncRunner(config, client=client, confirmer=confirmer, llm_client=llm_client)
    summary = asyncio.run(runner.run())
    summary.log()
    return summary
