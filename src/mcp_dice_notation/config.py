from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, field_validator


ENV_PREFIX = "DICE_NOTATION_"


class Settings(BaseModel):
    """Server settings, read from ``DICE_NOTATION_*`` environment variables."""

    server_name: str = Field("mcp-dice-notation", description="MCP server name")
    transport: Literal["stdio", "sse", "streamable-http"] = Field("stdio", description="MCP transport")
    log_level: str = Field("WARNING", description="Root log level for the server process")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    values = {
        name: env[ENV_PREFIX + name.upper()]
        for name in Settings.model_fields
        if ENV_PREFIX + name.upper() in env
    }
    return Settings(**values)
