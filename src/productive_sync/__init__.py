"""Productive Sync - Turn daily development activity into Productive time entries."""

__version__ = "1.0.0"

from .config import Config, ApiCredentials, LLMConfig, ConfigError
from .productive_api import ProductiveClient, TimeEntryUploader, TimeEntry
from .service_folders import discover_service_folders, is_path_within_folder
from .notes import format_notes
from .llm_helper import refine_note
from .sync import SyncRunner, RunSummary, run_sync

__all__ = [
    "Config",
    "ApiCredentials",
    "LLMConfig",
    "ConfigError",
    "ProductiveClient",
    "TimeEntryUploader",
    "TimeEntry",
    "discover_service_folders",
    "is_path_within_folder",
    "format_notes",
    "refine_note",
    "SyncRunner",
    "RunSummary",
    "run_sync",
]
