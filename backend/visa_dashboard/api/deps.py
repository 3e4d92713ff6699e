from collections.abc import Generator, Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from visa_dashboard.core.config import settings
from visa_dashboard.core.db import engine
from visa_dashboard.services.repository import (
    ApplicantRepository,
    JsonApplicantRepository,
    SqlApplicantRepository,
)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


@lru_cache
def get_json_repository() -> JsonApplicantRepository:
    # One in-memory copy per process so analyses and decisions stick.
    return JsonApplicantRepository(
        settings.APPLICANTS_JSON_URL,
        timeout=settings.APPLICANTS_FETCH_TIMEOUT_SECONDS,
    )


def get_repository(session: SessionDep) -> ApplicantRepository:
    if settings.APPLICANTS_SOURCE == "json":
        return get_json_repository()
    return SqlApplicantRepository(session)


RepositoryDep = Annotated[ApplicantRepository, Depends(get_repository)]


@contextmanager
def open_repository() -> Iterator[ApplicantRepository]:
    """Repository for work running outside a request, e.g. background tasks."""
    if settings.APPLICANTS_SOURCE == "json":
        yield get_json_repository()
        return
    with Session(engine) as session:
        yield SqlApplicantRepository(session)
