"""Configuration management"""
import os
from dotenv import load_dotenv

from wellness_engine.exceptions import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Storage
# - 'memory' (default): process-local key-value store
# - 'redis': shared store at REDIS_URL
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory")
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Insight cache (10 minutes)
INSIGHT_CACHE_TTL_SECONDS: int = int(os.getenv("INSIGHT_CACHE_TTL_SECONDS", "600"))

# AI completion provider
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o-mini")
AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.7"))
AI_TIMEOUT_SECONDS: float = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))
AI_MAX_RETRIES: int = int(os.getenv("AI_MAX_RETRIES", "2"))


# Validation
def validate_config() -> None:
    """Validate configuration consistency"""
    if STORAGE_BACKEND not in ("memory", "redis"):
        raise ConfigurationError(
            f"Unknown STORAGE_BACKEND '{STORAGE_BACKEND}'", config_key="STORAGE_BACKEND"
        )
    if STORAGE_BACKEND == "redis" and not REDIS_URL:
        raise ConfigurationError("REDIS_URL is required for the redis backend", config_key="REDIS_URL")
    if INSIGHT_CACHE_TTL_SECONDS <= 0:
        raise ConfigurationError(
            "INSIGHT_CACHE_TTL_SECONDS must be positive", config_key="INSIGHT_CACHE_TTL_SECONDS"
        )
    if AI_TIMEOUT_SECONDS <= 0:
        raise ConfigurationError("AI_TIMEOUT_SECONDS must be positive", config_key="AI_TIMEOUT_SECONDS")
    # OPENAI_API_KEY is optional: without it insights use the fallback payload
