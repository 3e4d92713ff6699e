import logging

from sqlmodel import Session, create_engine, func, select

from visa_dashboard.core.config import settings
from visa_dashboard.models import VisaApplicant
from visa_dashboard.services.repository import load_applicants_json

logger = logging.getLogger(__name__)

connect_args = (
    {"check_same_thread": False}
    if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite")
    else {}
)
engine = create_engine(settings.SQLALCHEMY_DATABASE_URI, connect_args=connect_args)


# make sure all SQLModel models are imported (visa_dashboard.models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly
# for more details: https://github.com/fastapi/full-stack-fastapi-template/issues/28


def init_db(session: Session) -> None:
    # Tables should be created with Alembic migrations
    # But if you don't want to use migrations, create
    # the tables un-commenting the next lines
    # from sqlmodel import SQLModel

    # This works because the models are already imported and registered from visa_dashboard.models
    # SQLModel.metadata.create_all(engine)

    count = session.exec(select(func.count()).select_from(VisaApplicant)).one()
    if count:
        logger.info("Applicant table already holds %s rows; skipping seed", count)
        return

    applicants = load_applicants_json(settings.APPLICANTS_JSON_URL)
    for applicant in applicants:
        session.add(applicant)
    session.commit()
    logger.info("Seeded %s applicants from %s", len(applicants), settings.APPLICANTS_JSON_URL)
