import os
from dataclasses import asdict, dataclass, field
from typing import Dict


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass
class BaseConfig:
    DEBUG: bool = False
    TESTING: bool = False
    CORS_ORIGINS: str = "http://localhost:5173"

    LLM_MODEL: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gemini-2.5-flash"))
    LLM_TEMPERATURE: float = field(default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.7))
    LLM_TIMEOUT_SECONDS: int = field(default_factory=lambda: _env_int("LLM_TIMEOUT_SECONDS", 60))
    # Generation is not idempotent; raise only if the upstream is known to dedupe.
    LLM_MAX_ATTEMPTS: int = field(default_factory=lambda: _env_int("LLM_MAX_ATTEMPTS", 1))
    REPLY_CLASSIFIER: str = field(default_factory=lambda: os.getenv("REPLY_CLASSIFIER", "salutation"))
    REQUEST_TIMEOUT_SECONDS: int = 180


@dataclass
class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True


@dataclass
class TestingConfig(BaseConfig):
    TESTING: bool = True
    REQUEST_TIMEOUT_SECONDS: int = 5


CONFIG_MAP = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": BaseConfig
}


def load_config(name: str) -> Dict[str, object]:
    config_class = CONFIG_MAP.get(name, BaseConfig)
    return asdict(config_class())
