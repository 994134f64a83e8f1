from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)
    reference_tz: str = Field(default="Australia/Sydney", alias="REFERENCE_TZ")
    db_path: str = Field(default="./data/skilltrack.db", alias="DB_PATH")
    layout_columns: int = Field(default=3, alias="LAYOUT_COLUMNS")
    layout_gap: float = Field(default=16.0, alias="LAYOUT_GAP")
    layout_fallback_height: float = Field(default=200.0, alias="LAYOUT_FALLBACK_HEIGHT")
    layout_container_width: float = Field(default=1200.0, alias="LAYOUT_CONTAINER_WIDTH")
    relayout_debounce_ms: int = Field(default=100, alias="RELAYOUT_DEBOUNCE_MS")
    feed_limit: int = Field(default=25, alias="FEED_LIMIT")
    detect_boss_kills: bool = Field(default=True, alias="DETECT_BOSS_KILLS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_error_file: str = Field(default="", alias="LOG_ERROR_FILE")

settings = Settings()
