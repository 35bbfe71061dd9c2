import os
import tempfile

# The app initialises its database on import; keep that out of the project tree.
os.environ.setdefault("DISG_DATABASE_PATH", os.path.join(tempfile.mkdtemp(), "disg.db"))

import pytest  # noqa: E402

import database  # noqa: E402
import mailer  # noqa: E402
from app import app as flask_app  # noqa: E402
from questions import DISG_QUESTIONS  # noqa: E402

DEFAULT_RANKS = {"D": 4, "I": 3, "S": 2, "G": 1}


def build_answers(ranks=None, per_row=None):
    """Answers for the whole catalog.

    ``ranks`` maps trait code -> score for every row; ``per_row`` maps a row id
    to its own trait -> score mapping.
    """
    ranks = ranks or DEFAULT_RANKS
    per_row = per_row or {}
    answers = []
    for row in DISG_QUESTIONS:
        row_ranks = per_row.get(row.id, ranks)
        for adjective in row.adjectives:
            answers.append({"word": adjective.word, "score": row_ranks[adjective.trait]})
    return answers


@pytest.fixture
def answers_for():
    return build_answers


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "disg.db"
    monkeypatch.setattr(database, "DATABASE_PATH", str(path))
    database.init_db()
    return path


@pytest.fixture
def app(db_path, monkeypatch):
    settings = {
        "TESTING": True,
        "ADMIN_LOGIN_DELAY": 0,
        "ADMIN_PASSWORD": "geheim",
        "ALLOWED_EMAILS": ["admin@example.com"],
        "EMAIL_ADMIN_RECIPIENT": "chef@example.com",
        "TEST_CHEATCODE": "letmein",
        "SENDGRID_API_KEY": "SG.test-key",
    }
    for key, value in settings.items():
        monkeypatch.setitem(flask_app.config, key, value)
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


class FakeResponse:
    status_code = 202


class FakeSendGrid:
    sent = []
    failing_calls = set()
    calls = 0

    def __init__(self, api_key):
        self.api_key = api_key

    def send(self, message):
        FakeSendGrid.calls += 1
        if FakeSendGrid.calls in FakeSendGrid.failing_calls:
            raise ConnectionError("SendGrid unreachable")
        FakeSendGrid.sent.append(message.get())
        return FakeResponse()


@pytest.fixture
def outbox(monkeypatch):
    """Capture outgoing emails as SendGrid request bodies."""
    FakeSendGrid.sent = []
    FakeSendGrid.failing_calls = set()
    FakeSendGrid.calls = 0
    monkeypatch.setattr(mailer, "SendGridAPIClient", FakeSendGrid)
    return FakeSendGrid.sent


@pytest.fixture
def failing_sends(outbox):
    """Numbers (1-based) of the send calls that should raise."""
    return FakeSendGrid.failing_calls
