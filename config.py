import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
}

IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
}


@dataclass(frozen=True)
class Settings:
    api_key: str
    provider: str = "openai"
    model: str = DEFAULT_MODELS["openai"]
    port: int = 9000
    base_url: Optional[str] = None
    timeout: Optional[float] = None
    include_diagnostics: bool = False
    render_dpi: int = 100
    image_format: str = "png"
    max_upload_mb: Optional[int] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_number(name: str, value: Optional[str], kind: type, default=None):
    if value is None or value.strip() == "":
        return default
    try:
        number = kind(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e
    if number <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return number


def load_settings(env: Optional[dict] = None) -> Settings:
    """
    Reads the service configuration from the environment (and a .env file if present)
    Returns: Settings
    """
    if env is None:
        load_dotenv()
        env = os.environ

    api_key = env.get("API_KEY") or env.get("OPENAI_API_KEY") or env.get("GEMINI_API_KEY")
    if not api_key:
        raise ValueError(
            "API_KEY environment variable is not set. "
            "Please set it with: export API_KEY='your-api-key'"
        )

    provider = env.get("INFERENCE_PROVIDER", "openai").strip().lower()
    if provider not in DEFAULT_MODELS:
        raise ValueError(
            f"Unknown INFERENCE_PROVIDER {provider!r}, expected one of {', '.join(DEFAULT_MODELS)}"
        )

    image_format = env.get("IMAGE_FORMAT", "png").strip().lower()
    if image_format == "jpg":
        image_format = "jpeg"
    if image_format not in IMAGE_MIME_TYPES:
        raise ValueError(f"IMAGE_FORMAT must be png or jpeg, got {image_format!r}")

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

    origins = [o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        api_key=api_key,
        provider=provider,
        model=env.get("MODEL_NAME") or DEFAULT_MODELS[provider],
        port=_parse_number("PORT", env.get("PORT"), int, 9000),
        base_url=env.get("OPENAI_BASE_URL") or None,
        timeout=_parse_number("INFERENCE_TIMEOUT", env.get("INFERENCE_TIMEOUT"), float),
        include_diagnostics=_parse_bool("INCLUDE_DIAGNOSTICS", env.get("INCLUDE_DIAGNOSTICS", "false")),
        render_dpi=_parse_number("RENDER_DPI", env.get("RENDER_DPI"), int, 100),
        image_format=image_format,
        max_upload_mb=_parse_number("MAX_UPLOAD_MB", env.get("MAX_UPLOAD_MB"), int),
        cors_origins=origins or ["*"],
        log_level=log_level,
    )
