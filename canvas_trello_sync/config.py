import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from canvas_trello_sync.exceptions import ConfigError

DEFAULT_TRACKING_FIELD = "Canvas URL"


class Settings(BaseSettings):
    canvas_access_token: str = ""
    trello_api_key: str = ""
    trello_api_token: str = ""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


# --- Sync config document ---


class TrelloConfig(BaseModel):
    board_id: str
    add_to_list: str
    tracking_field: str = DEFAULT_TRACKING_FIELD


class CanvasConfig(BaseModel):
    graphql_endpoint: AnyHttpUrl


class Mapping(BaseModel):
    canvas_course_id: str
    trello_label_name: str


class SyncConfig(BaseModel):
    trello: TrelloConfig
    canvas: CanvasConfig
    mappings: list[Mapping] = Field(default_factory=list, alias="mapping")

    model_config = {"populate_by_name": True}


def parse_config(text: str) -> SyncConfig:
    """Parse a TOML config document."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file: {e}") from e
    try:
        return SyncConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file: {e}") from e


def load_config(path: Path) -> SyncConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {str(path)!r}") from e
    return parse_config(text)
