from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, HttpUrl, computed_field, model_validator
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

PACKAGE_ROOT = Path(__file__).resolve().parents[1]


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Visa Risk Dashboard"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None
    LOG_LEVEL: str = "INFO"

    DEFAULT_LANGUAGE: Literal["ar", "en"] = "ar"

    # The gateway endpoint is called from browsers on other origins.
    BACKEND_CORS_ORIGINS: Annotated[list[str] | str, BeforeValidator(parse_cors)] = [
        "*"
    ]
    CORS_ALLOW_HEADERS: Annotated[list[str] | str, BeforeValidator(parse_cors)] = [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        if "*" in self.BACKEND_CORS_ORIGINS:
            return ["*"]
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Where the dashboard reads applicants from: the SQL table or a static
    # JSON document (file path or http(s) URL).
    APPLICANTS_SOURCE: Literal["database", "json"] = "database"
    APPLICANTS_JSON_URL: str = str(PACKAGE_ROOT / "data" / "visa_applicants.json")
    APPLICANTS_FETCH_TIMEOUT_SECONDS: float = 10.0

    POSTGRES_SERVER: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "visa_dashboard"
    SQLITE_PATH: str = str(PACKAGE_ROOT.parent / "visa_dashboard.db")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if not self.POSTGRES_SERVER:
            return f"sqlite:///{self.SQLITE_PATH}"
        return str(
            MultiHostUrl.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )

    AI_GATEWAY_API_KEY: str | None = None
    AI_GATEWAY_BASE_URL: str = "https://ai.gateway.lovable.dev/v1"
    AI_GATEWAY_MODEL: str = "google/gemini-2.5-flash"
    AI_GATEWAY_TIMEOUT_SECONDS: float = 60.0
    AI_GATEWAY_PROMPT_LANGUAGE: Literal["ar", "en"] = "ar"

    @model_validator(mode="after")
    def _check_postgres_password(self) -> Self:
        if (
            self.POSTGRES_SERVER
            and not self.POSTGRES_PASSWORD
            and self.ENVIRONMENT != "local"
        ):
            raise ValueError(
                "POSTGRES_PASSWORD must be set when using Postgres outside local"
            )
        return self


settings = Settings()  # type: ignore
