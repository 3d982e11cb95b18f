import os
import shutil
import tempfile
import uuid
from pathlib import Path


# Configure a scratch database directory before importing prodbay modules.
# Use the system temp directory to avoid cluttering the repo tree.
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="prodbay_pytest_"))

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_SESSION_DIR / 'session.db'}"

# Keep external integrations quiet during tests
os.environ["EMAIL_BACKEND"] = "console"
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("PRODUCER_EMAIL", "producer@example.com")
os.environ.setdefault("FRONTEND_BASE_URL", "http://app.test")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from prodbay.config import settings  # noqa: E402
from prodbay.core.notify.email_service import ConsoleEmailBackend, EmailService  # noqa: E402
from prodbay.core.shared.database_service import DatabaseService  # noqa: E402


def _scratch_url() -> str:
    return f"sqlite+aiosqlite:///{_SESSION_DIR / f'{uuid.uuid4().hex}.db'}"


@pytest_asyncio.fixture
async def database():
    """A fresh SQLite database with all tables created."""
    db = DatabaseService(_scratch_url())
    await db.init_db()
    yield db
    await db.close()


class RecordingEmailBackend(ConsoleEmailBackend):
    """Console backend that keeps every message it was asked to send."""

    def __init__(self):
        self.sent = []

    async def send_email(self, to, subject, html_body, text_body, from_address=None, from_name=None):
        self.sent.append({
            "to": to,
            "subject": subject,
            "text": text_body,
            "from_address": from_address,
            "from_name": from_name,
        })
        return True


@pytest.fixture
def email_backend():
    return RecordingEmailBackend()


@pytest.fixture
def email_service(email_backend):
    return EmailService(backend=email_backend)


@pytest.fixture
def client(monkeypatch, email_service):
    """TestClient against a scratch database; emails are recorded, never sent."""
    from prodbay.main import app

    monkeypatch.setattr(settings, "database_url", _scratch_url())
    with TestClient(app) as test_client:
        app.state.email_service = email_service
        yield test_client


def pytest_sessionfinish(session, exitstatus):
    """Cleanup temporary test files after the test session."""
    shutil.rmtree(_SESSION_DIR, ignore_errors=True)
