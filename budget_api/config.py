import os  # lets us read environment variables (from the OS)
from functools import (
    lru_cache,  # tiny built-in cache; we use it to reuse one Settings object
)

from dotenv import load_dotenv  # loads variables from a local .env file
from pydantic import BaseModel, model_validator  # typed, validated settings class

load_dotenv()  # read .env and put those key=value pairs into environment variables


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


class Settings(BaseModel):  # our typed container for config values
    # "development" shows detailed 500 messages; anything else hides them
    app_env: str = os.getenv("APP_ENV", "development")

    # database connection string; default is a SQLite file in the project folder
    # change effect: point to a different DB (e.g., Postgres) or file path
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./budget.db")

    # two distinct secrets: a refresh token must never verify as an access token
    # change effect: every token issued with the old value becomes invalid
    jwt_access_secret: str = os.getenv(
        "JWT_ACCESS_SECRET", "dev-access-secret-change-me-0123456789"
    )
    jwt_refresh_secret: str = os.getenv(
        "JWT_REFRESH_SECRET", "dev-refresh-secret-change-me-0123456789"
    )
    access_token_minutes: int = int(os.getenv("ACCESS_TOKEN_MINUTES", "15"))
    refresh_token_days: int = int(os.getenv("REFRESH_TOKEN_DAYS", "30"))

    # bcrypt work factor; tests lower it to keep the suite fast
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # frontend base URL used to build links inside emails
    app_url: str = os.getenv("APP_URL", "http://localhost:5173")
    cors_origins: list[str] = _env_list(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:5174,http://localhost:3000",
    )

    # when true, login is refused until the email address is verified
    require_email_verification: bool = _env_bool("REQUIRE_EMAIL_VERIFICATION")

    # email provider: Brevo first, then Resend; neither set = log links only
    brevo_api_key: str | None = os.getenv("BREVO_API_KEY") or None
    resend_api_key: str | None = os.getenv("RESEND_API_KEY") or None
    email_from: str = os.getenv("EMAIL_FROM", "noreply@example.com")
    email_from_name: str = os.getenv("EMAIL_FROM_NAME", "Budget API")
    email_timeout_secs: float = float(os.getenv("EMAIL_TIMEOUT_SECS", "10"))

    # how often expired blacklist rows are purged; 0 disables the scheduler
    token_cleanup_interval_minutes: int = int(
        os.getenv("TOKEN_CLEANUP_INTERVAL_MINUTES", "60")
    )

    # what to do when the blacklist lookup itself errors out
    # false = refuse the request (fail closed), true = let it through
    token_blacklist_fail_open: bool = _env_bool("TOKEN_BLACKLIST_FAIL_OPEN")

    @model_validator(mode="after")
    def _check_secrets(self) -> "Settings":
        if len(self.jwt_access_secret) < 32 or len(self.jwt_refresh_secret) < 32:
            raise ValueError("JWT secrets must be at least 32 characters")
        if self.jwt_access_secret == self.jwt_refresh_secret:
            raise ValueError("JWT access and refresh secrets must differ")
        return self

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


@lru_cache  # make sure Settings() is created once and reused (fast + consistent)
def get_settings() -> Settings:
    return Settings()  # build from env (already loaded by load_dotenv())
