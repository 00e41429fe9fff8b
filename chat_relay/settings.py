import re
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    ENVIRONMENT: str = "dev"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/logging_errors.log"
    LOG_CONSOLE_FORMAT: Literal["human", "json"] = "human"

    # Room settings
    DEFAULT_ROOM_ID: str = "default"
    ROOM_ID_MAX_LENGTH: int = 128
    ROOM_ID_PATTERN: re.Pattern = re.compile(r"^[A-Za-z0-9_.:@-]+$")

    # WebSocket settings
    WS_QUEUE_MAX_SIZE: int = 256
    # Evict a connection after this many enqueue failures in a row, 0 disables
    WS_MAX_CONSECUTIVE_SEND_FAILURES: int = 32


app_settings = Settings()
