"""
Codex session log collector

Sessions are stored as JSONL under <sessions_dir>/YYYY/MM/DD/. Only the
user prompts of the target day are extracted; they become the "what was
worked on" part of the note.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from ..models import SessionActivity
from ..service_folders import is_path_within_any_folder

logger = logging.getLogger(__name__)

MIN_PROMPT_LENGTH = 10
MAX_PROMPT_LENGTH = 500

# Injected instructions that are not prompts the user typed
BOILERPLATE_MARKERS = (
    "<environment_context>",
    "<permissions instructions>",
    "<collaboration_mode>",
)
AGENTS_HEADER = "# agents.md instructions"


def extract_user_message_text(content: Any) -> str:
    """Plain string content, or text blocks joined by single spaces"""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    parts = []
    for block in content:
        if not isinstance(block, dict):
            continue
        if block.get("type") not in ("input_text", "text"):
            continue
        text = block.get("text")
        if isinstance(text, str):
            parts.append(text)

    return " ".join(parts).strip()


def is_likely_user_prompt(content: str) -> bool:
    trimmed = content.strip()
    if len(trimmed) <= MIN_PROMPT_LENGTH or len(trimmed) >= MAX_PROMPT_LENGTH:
        return False

    normalized = trimmed.lower()
    if any(marker in normalized for marker in BOILERPLATE_MARKERS):
        return False
    return not normalized.startswith(AGENTS_HEADER)


def project_name_from_path(project_path: str) -> str:
    parts = [p for p in project_path.split("/") if p]
    return parts[-1] if parts else project_path


def path_in_scan_dirs(project_path: str, scan_dirs: Iterable[str]) -> bool:
    return is_path_within_any_folder(project_path, scan_dirs)


class CodexSessionParser:
    """Parses Codex session files for one day"""

    def __init__(self, sessions_dir: str):
        self.sessions_dir = Path(sessions_dir).expanduser()

    def day_dir(self, date: str) -> Path:
        return self.sessions_dir / date[0:4] / date[5:7] / date[8:10]

    def list_session_files(self, date: str) -> Optional[list[Path]]:
        """Session files of the day, or None if the day directory is unreadable"""
        try:
            return sorted(p for p in self.day_dir(date).iterdir() if p.name.endswith(".jsonl"))
        except OSError:
            return None

    def parse_session_file(self, session_file: Path, date: str) -> SessionActivity:
        session = SessionActivity(
            session_id=session_file.stem,
            project_path=None,
            session_file=session_file.name,
        )

        try:
            with open(session_file, "r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    if not line.strip():
                        continue
                    try:
                        entry = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if isinstance(entry, dict):
                        self._apply_entry(session, entry, date)
        except OSError as e:
            logger.warning(f"Cannot read session file {session_file}: {e}")

        return session

    def _apply_entry(self, session: SessionActivity, entry: dict, date: str):
        entry_type = entry.get("type")
        payload = entry.get("payload")
        if not isinstance(payload, dict):
            return

        if entry_type == "session_meta":
            cwd = payload.get("cwd")
            session_id = payload.get("id")
            if isinstance(cwd, str) and cwd and not session.project_path:
                session.project_path = cwd
            if isinstance(session_id, str) and session_id:
                session.session_id = session_id
            return

        timestamp = entry.get("timestamp")
        if not (isinstance(timestamp, str) and timestamp.startswith(date)):
            return
        if entry_type != "response_item":
            return
        if payload.get("type") != "message" or payload.get("role") != "user":
            return

        content = extract_user_message_text(payload.get("content"))
        if is_likely_user_prompt(content):
            session.summaries.append(content.strip())

    def collect(self, date: str, scan_dirs: list[str]) -> list[SessionActivity]:
        files = self.list_session_files(date)
        if files is None:
            logger.warning(f"Cannot read Codex sessions directory: {self.day_dir(date)}")
            return []

        activities = []
        for session_file in files:
            session = self.parse_session_file(session_file, date)
            if not session.project_path or not session.summaries:
                continue
            if not path_in_scan_dirs(session.project_path, scan_dirs):
                logger.debug(f"Skipping Codex session outside scan dirs: {session.project_path}")
                continue
            activities.append(session)

        return activities


async def collect_codex_activity(sessions_dir: str, scan_dirs: list[str], date: str) -> list[SessionActivity]:
    """
    Collect Codex sessions with user prompts on the given day

    Args:
        sessions_dir: Codex sessions root
        scan_dirs: only sessions whose cwd is inside one of these are kept
        date: YYYY-MM-DD
    """
    logger.info(f"Collecting Codex session activity for {date}")
    parser = CodexSessionParser(sessions_dir)
    activities = await asyncio.to_thread(parser.collect, date, scan_dirs)
    logger.info(f"Found {len(activities)} Codex session(s) with activity on {date}")
    return activities
