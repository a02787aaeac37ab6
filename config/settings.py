from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Redis (history flags only)
    REDIS_URL: str = "redis://localhost:6379/0"
    HISTORY_KEY_PREFIX: str = "holding:consign_history:"

    # Upstream trading backend
    UPSTREAM_BASE_URL: str = "http://localhost:8080"
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0
    UPSTREAM_SUCCESS_CODE: int = 1
    # Eligibility check must resolve within this window, else local clock is used
    ELIGIBILITY_TIMEOUT_SECONDS: float = 3.0

    # Reservation rules
    BASE_HASHRATE: int = 5
    MAX_BID_QUANTITY: int = 100

    # Disposition rules
    MATURATION_HOURS: int = 48
    COUNTDOWN_TICK_SECONDS: float = 1.0
    COUPON_PAGE_LIMIT: int = 100
    COUPON_MAX_PAGES: int = 20
    LEGACY_COUPON_POLICY: str = "OPTIMISTIC"  # OPTIMISTIC / STRICT

    # App
    APP_NAME: str = "Collectibles Disposition Engine"
    DEBUG: bool = False


settings = Settings()
