import os
import tempfile
from collections.abc import Generator
from pathlib import Path

# Point the app at a throwaway SQLite file before any settings are loaded.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="visa-dashboard-tests-")
os.environ["SQLITE_PATH"] = os.path.join(_TEST_DB_DIR, "test.db")
os.environ["APPLICANTS_SOURCE"] = "database"
os.environ["DEFAULT_LANGUAGE"] = "ar"

import pytest  # noqa: E402
from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, delete  # noqa: E402

from visa_dashboard.core.db import engine, init_db  # noqa: E402
from visa_dashboard.main import app  # noqa: E402
from visa_dashboard.models import ApplicantAuditEvent, VisaApplicant  # noqa: E402
from visa_dashboard.services.batch_analysis import reset_progress  # noqa: E402

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


@pytest.fixture(scope="session")
def db() -> Generator[Session, None, None]:
    alembic_cfg = Config(str(ALEMBIC_INI))
    command.upgrade(alembic_cfg, "head")

    with Session(engine) as session:
        init_db(session)
        yield session
        statement = delete(ApplicantAuditEvent)
        session.execute(statement)
        statement = delete(VisaApplicant)
        session.execute(statement)
        session.commit()


@pytest.fixture(scope="module")
def client(db: Session) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def seeded_db(db: Session) -> Generator[None, None, None]:
    """Restore the sample applicants and clear audit events and batch state."""
    with Session(engine) as session:
        session.execute(delete(ApplicantAuditEvent))
        session.execute(delete(VisaApplicant))
        session.commit()
        init_db(session)
    reset_progress()
    yield
    reset_progress()
