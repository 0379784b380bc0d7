"""Runtime configuration.

Centralizes defaults and the environment variables the client reads.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from .exceptions import ConfigurationError

# Environment variables
API_KEY_ENV = "GOOGLE_CLI"
MODEL_ENV = "GEMINI_MODEL"
SYSTEM_INSTRUCTION_ENV = "PROMPTLINE_SYSTEM_INSTRUCTION"
LOG_FILE_ENV = "PROMPTLINE_LOG_FILE"
LOG_LEVEL_ENV = "PROMPTLINE_LOG_LEVEL"

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_SYSTEM_INSTRUCTION = "answer concisely."
DEFAULT_LOG_FILE = Path("debug.log")
DEFAULT_LOG_LEVEL = "debug"


class ChatConfig(BaseModel):
    """Settings for one client process."""

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr = Field(description="Gemini API key")
    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    system_instruction: str = Field(default=DEFAULT_SYSTEM_INSTRUCTION)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    log_file: Path = Field(default=DEFAULT_LOG_FILE)
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        pattern="(?i)^(debug|info|warning|error)$",
    )


def load_config(**overrides) -> ChatConfig:
    """Build a ChatConfig from the environment.

    Keyword overrides with a value of None are ignored, so CLI options can be
    passed straight through.

    Raises:
        ConfigurationError: If the API key is missing or a value is invalid
    """
    api_key = os.getenv(API_KEY_ENV, "")
    if not api_key:
        raise ConfigurationError(f"missing '{API_KEY_ENV}' env variable.", code="CONFIG")

    values = {
        "api_key": api_key,
        "model": os.getenv(MODEL_ENV) or DEFAULT_MODEL,
        "system_instruction": os.getenv(SYSTEM_INSTRUCTION_ENV, DEFAULT_SYSTEM_INSTRUCTION),
        "log_file": os.getenv(LOG_FILE_ENV) or DEFAULT_LOG_FILE,
        "log_level": os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL,
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ChatConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}", code="CONFIG") from e
