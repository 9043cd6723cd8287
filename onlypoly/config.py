"""
Server configuration loaded from environment variables.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Server configuration."""

    # Server settings
    HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("SERVER_PORT", "8765"))
    CONNECT_TIMEOUT: float = float(os.getenv("CONNECT_TIMEOUT", "30"))

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/onlypoly.db"))
    RESET_ON_START: bool = _env_bool("RESET_ON_START")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Sessions
    SESSION_TTL_HOURS: float = float(os.getenv("SESSION_TTL_HOURS", "24"))
    CLEANUP_INTERVAL_SECONDS: float = float(os.getenv("CLEANUP_INTERVAL_SECONDS", "3600"))

    # Game settings
    ROOM_ID: str = os.getenv("ROOM_ID", "default_room")
    MIN_PLAYERS: int = 2
    MAX_PLAYERS: int = int(os.getenv("MAX_PLAYERS", "8"))
    MIN_READY_PLAYERS: int = 2
    AUCTION_DURATION_SECONDS: float = float(os.getenv("AUCTION_DURATION_SECONDS", "30"))
    AUCTION_GRACE_SECONDS: float = 0.05

    @classmethod
    def ensure_directories(cls) -> None:
        """Create necessary directories if they don't exist."""
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)


config = Config()
settings = config
