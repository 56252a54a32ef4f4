"""Configuration management"""
import os
from pathlib import Path
from dotenv import load_dotenv

from jobquest.exceptions import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Storage
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))

# Seconds before a single store call is reported as a PersistenceTimeoutError
PERSISTENCE_TIMEOUT_SECONDS: float = float(os.getenv("PERSISTENCE_TIMEOUT_SECONDS", "5.0"))

# Session
DEFAULT_USER_ID: str = os.getenv("DEFAULT_USER_ID", "local")

# IANA timezone used to decide what "today" is for logins and quest rollover
USER_TIMEZONE: str = os.getenv("USER_TIMEZONE", "UTC")

# Leveling curve: xp_for_level(n) = floor(LEVEL_BASE_XP * LEVEL_MULTIPLIER ** (n - 1))
LEVEL_BASE_XP: int = int(os.getenv("LEVEL_BASE_XP", "100"))
LEVEL_MULTIPLIER: float = float(os.getenv("LEVEL_MULTIPLIER", "1.5"))
MAX_LEVEL: int = int(os.getenv("MAX_LEVEL", "100"))

# Concurrently active quests per cadence
DAILY_QUEST_SLOTS: int = int(os.getenv("DAILY_QUEST_SLOTS", "3"))
WEEKLY_QUEST_SLOTS: int = int(os.getenv("WEEKLY_QUEST_SLOTS", "3"))


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if LEVEL_BASE_XP <= 0:
        raise ConfigurationError("LEVEL_BASE_XP must be positive", config_key="LEVEL_BASE_XP")
    if LEVEL_MULTIPLIER < 1.0:
        raise ConfigurationError("LEVEL_MULTIPLIER must be at least 1.0", config_key="LEVEL_MULTIPLIER")
    if MAX_LEVEL < 1:
        raise ConfigurationError("MAX_LEVEL must be at least 1", config_key="MAX_LEVEL")
    if DAILY_QUEST_SLOTS < 1 or WEEKLY_QUEST_SLOTS < 1:
        raise ConfigurationError("Quest slot counts must be at least 1", config_key="QUEST_SLOTS")
    if PERSISTENCE_TIMEOUT_SECONDS <= 0:
        raise ConfigurationError(
            "PERSISTENCE_TIMEOUT_SECONDS must be positive",
            config_key="PERSISTENCE_TIMEOUT_SECONDS"
        )
