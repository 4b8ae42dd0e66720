# strategy_hub/utils/env_validator.py
"""
Environment variable validation on startup.
Reports missing configuration; never aborts the process.
"""
import os
from typing import Dict, Any

from .config import Settings, _load_file_config, DEFAULT_JWT_SECRET
from .logger import logger

# Required environment variables (must be set in production)
REQUIRED_ENV_VARS = [
    "DATABASE_URL",  # Relational database connection
    "JWT_SECRET_KEY",  # Token signing (min 32 chars)
]

# Optional but recommended environment variables
RECOMMENDED_ENV_VARS = [
    "GROQ_API_KEY",  # Strategy generation
    "PUBLIC_BASE_URL",  # Links in verification / reset e-mails
    "REDIS_URL",  # Shared throttle counters across instances
    "SENTRY_DSN",  # Error tracking
]

# Environment variable descriptions
ENV_VAR_DESCRIPTIONS: Dict[str, str] = {
    "DATABASE_URL": "Database connection string (default: local SQLite file)",
    "JWT_SECRET_KEY": "Secret key for JWT token signing",
    "GROQ_API_KEY": "Text-generation API key; /strategies/generate fails without it",
    "PUBLIC_BASE_URL": "Public URL of the web client (default: http://localhost:3000)",
    "REDIS_URL": "Redis URL for the strategy-creation throttle (default: in-memory, single process)",
    "SENTRY_DSN": "Sentry error tracking DSN (optional but recommended)",
}


def _is_set(var: str, cfg: Dict[str, str]) -> bool:
    return bool(os.getenv(var) or cfg.get(var))


def validate_env_vars(settings: Settings) -> Dict[str, Any]:
    """
    Validate environment variables on startup.

    Returns:
        Dictionary with validation results:
        {
            "valid": bool,
            "missing_required": List[str],
            "missing_recommended": List[str],
            "warnings": List[str]
        }
    """
    cfg = _load_file_config()
    result = {
        "valid": True,
        "missing_required": [],
        "missing_recommended": [],
        "warnings": []
    }

    for var in REQUIRED_ENV_VARS:
        if not _is_set(var, cfg):
            result["missing_required"].append(var)
            result["valid"] = False

    for var in RECOMMENDED_ENV_VARS:
        if not _is_set(var, cfg):
            result["missing_recommended"].append(var)

    if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        result["warnings"].append("JWT_SECRET_KEY is the development placeholder; tokens are forgeable")
    elif len(settings.jwt_secret_key) < 32:
        result["warnings"].append(
            "JWT_SECRET_KEY is too short (minimum 32 characters recommended for security)"
        )

    return result


def log_env_validation(validation_result: Dict[str, Any]) -> None:
    """Log environment variable validation results."""
    if not validation_result["valid"]:
        logger.warning(
            "Environment validation failed; missing required variables: %s",
            ", ".join(validation_result["missing_required"]),
        )
    else:
        logger.info("Environment validation passed")

    for var in validation_result["missing_recommended"]:
        desc = ENV_VAR_DESCRIPTIONS.get(var, "No description")
        logger.info("Recommended variable %s not set: %s", var, desc)

    for warning in validation_result["warnings"]:
        logger.warning(warning)
