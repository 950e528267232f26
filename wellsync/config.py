from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./wellsync.db"
    google_gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash-lite"
    gemini_request_timeout_seconds: int = 90
    gemini_max_attempts: int = 1  # 1 = no automatic retry
    app_env: str = "development"
    debug: bool = False

    # Cross-device channel
    phone_node_id: str = "phone"
    watch_node_id: str = "watch"
    pairing_token: str = "change-me-in-production"
    phone_base_url: str = "http://localhost:8000/api/v1"
    watch_poll_interval_seconds: int = 15
    sync_dedup_enabled: bool = True
    sync_receipt_retention_days: int = 30
    device_timezone: str = ""  # IANA name; empty = local time of the process

    # Record store: optimistic read-modify-write attempts before giving up
    store_update_max_attempts: int = 5

    def validate_pairing_config(self) -> None:
        """Raise if production config still uses the default pairing token."""
        if self.app_env != "production":
            return
        if not self.pairing_token.strip() or self.pairing_token == "change-me-in-production":
            raise RuntimeError("PAIRING_TOKEN must be set in production")


settings = Settings()
