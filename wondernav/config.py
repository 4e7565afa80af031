import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from wondernav.errors import ConfigurationError
from wondernav.utils.util import DEFAULT_MODEL_ID, DEFAULT_SYSTEM_PROMPT

# Load environment variables first
load_dotenv()

PROVIDERS = ("bedrock", "openai")

# DynamoDB rejects partition keys above 2048 bytes
MAX_KEY_BYTES = 2048

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once per process from the environment."""

    table_name: str = "WonderNAV-Chats"
    dynamodb_endpoint_url: Optional[str] = None
    aws_region: str = "us-east-1"
    completion_provider: str = "bedrock"
    model_id: str = DEFAULT_MODEL_ID
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    max_tokens: int = 900
    temperature: float = 0.7
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    request_timeout_seconds: int = 25
    max_input_length: int = MAX_KEY_BYTES
    cache_lookup: bool = False
    chat_ttl_seconds: Optional[int] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        provider = env.get("COMPLETION_PROVIDER", "bedrock").strip().lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"COMPLETION_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider!r}"
            )
        api_key = env.get("OPENAI_API_KEY") or None
        if provider == "openai" and not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required when COMPLETION_PROVIDER=openai")

        max_input_length = _get_int(env, "MAX_INPUT_LENGTH", MAX_KEY_BYTES)
        if max_input_length > MAX_KEY_BYTES:
            raise ConfigurationError(
                f"MAX_INPUT_LENGTH cannot exceed the {MAX_KEY_BYTES} byte key limit"
            )

        log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
        # getLevelName maps known names to their int value and anything else to a string
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

        ttl = None
        if env.get("CHAT_TTL_SECONDS", "").strip():
            ttl = _get_int(env, "CHAT_TTL_SECONDS", 0)

        return cls(
            # USERS_TABLE is what the first SAM template exported
            table_name=env.get("CHATS_TABLE") or env.get("USERS_TABLE") or cls.table_name,
            dynamodb_endpoint_url=env.get("DYNAMODB_ENDPOINT_URL") or None,
            aws_region=env.get("AWS_REGION") or cls.aws_region,
            completion_provider=provider,
            model_id=env.get("MODEL_ID") or cls.model_id,
            openai_api_key=api_key,
            openai_base_url=(env.get("OPENAI_BASE_URL") or cls.openai_base_url).rstrip("/"),
            max_tokens=_get_int(env, "MAX_TOKENS", 900),
            temperature=_get_float(env, "TEMPERATURE", 0.7),
            system_prompt=env.get("SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT,
            request_timeout_seconds=_get_int(env, "REQUEST_TIMEOUT_SECONDS", 25),
            max_input_length=max_input_length,
            cache_lookup=_get_bool(env, "CACHE_LOOKUP", False),
            chat_ttl_seconds=ttl,
            log_level=log_level,
        )
