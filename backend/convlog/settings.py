"""Converter configuration via environment variables."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConvertSettings(BaseSettings):
    model_config = {"env_prefix": "CONVLOG_"}

    output_format: Literal["jsonl", "msgpack"] = "jsonl"
    # replace seat names with Aさん..Dさん
    hide_names: bool = False
    log_dir: str | None = Field(default=None, min_length=1)
    log_format: Literal["console", "json"] = "console"
    log_level: LogLevel = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("output_format", "log_format", mode="before")
    @classmethod
    def normalize_format(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v
