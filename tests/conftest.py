"""Pytest configuration and fixtures."""

import json
import pytest
from unittest.mock import MagicMock, patch

from productive_sync.config import Config
from productive_sync.models import GitCommit, RepoActivity, ResolvedBooking, SessionActivity


@pytest.fixture
def sample_env(tmp_path):
    """Complete set of environment variables."""
    return {
        "PRODUCTIVE_API_TOKEN": "test-token-12345",
        "PRODUCTIVE_ORG_ID": "org-1",
        "PRODUCTIVE_PERSON_ID": "person-1",
        "CHATGPT_API_KEY": "sk-test",
        "SCAN_DIRS": str(tmp_path / "work"),
        "GIT_AUTHOR_NAME": "Jane Doe",
        "CODEX_SESSIONS_DIR": str(tmp_path / "sessions"),
    }


@pytest.fixture
def sample_config(tmp_path):
    """Run configuration for 2026-02-12."""
    return Config(
        productive_api_token="test-token-12345",
        productive_org_id="org-1",
        productive_person_id="person-1",
        chatgpt_api_key="sk-test",
        scan_dirs=(str(tmp_path / "work"),),
        git_author_name="Jane Doe",
        codex_sessions_dir=str(tmp_path / "sessions"),
        date="2026-02-12",
    )


@pytest.fixture
def sample_booking():
    """Booking resolved against service 42."""
    return ResolvedBooking(
        booking_id="b-1",
        service_id="42",
        service_number="1001",
        billed_client="Acme",
        deal_id="d-1",
        project_id="p-1",
        project_name="Website",
        service_name="Development",
        time_minutes=240,
    )


@pytest.fixture
def sample_repo_activity():
    """Two commits in one repository."""
    return RepoActivity(
        repo_name="web",
        repo_path="/work/acme/web",
        commits=[
            GitCommit(hash="abc1234", subject="Add login form", files_changed=3, insertions=40, deletions=2),
            GitCommit(hash="def5678", subject="Fix header", files_changed=1, insertions=1, deletions=1),
        ],
    )


@pytest.fixture
def sample_session_activity():
    """Codex session with two prompts."""
    return SessionActivity(
        session_id="sess-1",
        project_path="/work/acme/web",
        session_file="rollout-1.jsonl",
        summaries=["Add validation to the login form", "Write tests for the header"],
    )


@pytest.fixture
def write_session(tmp_path):
    """Write a Codex session file under sessions/YYYY/MM/DD."""
    def _write(date, name, entries):
        day_dir = tmp_path / "sessions" / date[0:4] / date[5:7] / date[8:10]
        day_dir.mkdir(parents=True, exist_ok=True)
        path = day_dir / name
        path.write_text("\n".join(
            e if isinstance(e, str) else json.dumps(e) for e in entries
        ) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def mock_requests_session():
    """Mock requests session for API testing."""
    with patch("requests.Session") as mock_session:
        mock_instance = MagicMock()
        mock_instance.headers = {}
        mock_session.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def make_response():
    """Build MagicMocks standing in for requests.Response."""
    def _make(payload, status_code=200):
        response = MagicMock()
        response.ok = 200 <= status_code < 300
        response.status_code = status_code
        response.json.return_value = payload
        response.text = json.dumps(payload)
        return response
    return _make
