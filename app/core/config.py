from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class BusinessCalendar(BaseModel):
    """Business calendar parameters, fixed for the process lifetime.

    All hours are on the canonical UTC clock. ``close_hour`` is exclusive,
    so the last slot of a day starts one interval before it.
    """

    model_config = ConfigDict(frozen=True)

    slot_interval_minutes: int = 30
    open_hour: int = 9
    close_hour: int = 17
    modification_window_hours: int = 2
    search_horizon_days: int = 30

    @model_validator(mode="after")
    def _check_window(self) -> "BusinessCalendar":
        if not 0 <= self.open_hour < self.close_hour <= 24:
            raise ValueError("business window must satisfy 0 <= open_hour < close_hour <= 24")
        if self.slot_interval_minutes <= 0 or 60 % self.slot_interval_minutes:
            raise ValueError("slot_interval_minutes must be a positive divisor of 60")
        if self.search_horizon_days <= 0:
            raise ValueError("search_horizon_days must be positive")
        return self

    @property
    def minute_offsets(self) -> range:
        return range(0, 60, self.slot_interval_minutes)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str

    # JWT (tokens are issued by the identity service; we only verify them)
    secret_key: str
    access_token_expire_minutes: int = 15
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Slot/appointment business rules
    slot_interval_minutes: int = 30
    business_start_hour: int = 9
    business_end_hour: int = 17  # exclusive, so last slot starts at 16:30
    modification_window_hours: int = 2
    search_horizon_days: int = 30

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def business_calendar(self) -> BusinessCalendar:
        return BusinessCalendar(
            slot_interval_minutes=self.slot_interval_minutes,
            open_hour=self.business_start_hour,
            close_hour=self.business_end_hour,
            modification_window_hours=self.modification_window_hours,
            search_horizon_days=self.search_horizon_days,
        )


settings = Settings()
