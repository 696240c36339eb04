from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class Settings:
    db_path: Path
    model_path: Path
    leaderboard_size: int = 10
    feedback_ttl_s: float = 1.0
    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings(
        db_path=Path(os.getenv("CURLCOUNT_DB_PATH", "./curlcount.db")),
        model_path=Path(os.getenv("CURLCOUNT_MODEL_PATH", "./models/curl_model.joblib")),
        leaderboard_size=int(os.getenv("CURLCOUNT_LEADERBOARD_SIZE", "10")),
        feedback_ttl_s=float(os.getenv("CURLCOUNT_FEEDBACK_TTL_S", "1.0")),
        log_level=os.getenv("CURLCOUNT_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
