"""
Secrets Loader (v1.0.0)
Layered secret resolution: mounted secret files first, then environment.

Lookup order for a secret NAME:
  1. <secrets_dir>/NAME                 (plain file)
  2. <secrets_dir>/NAME/NAME            (Cloud Run directory mount)
  3. <secrets_dir>/NAME/latest
  4. os.environ["NAME"] (a local .env file is loaded once via python-dotenv)

secrets_dir is STYLIST_SECRETS_DIR if set, else /secrets, else ./secrets.
Secret values are never logged.
"""
import os
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CLOUD_SECRETS_DIR = Path("/secrets")
LOCAL_SECRETS_DIR = Path.cwd() / "secrets"

_cache: Dict[str, str] = {}
_dotenv_loaded = False


class SecretError(Exception):
    """Raised when a required secret is missing or malformed."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _ensure_dotenv():
    global _dotenv_loaded
    if not _dotenv_loaded:
        load_dotenv()
        _dotenv_loaded = True


def get_secrets_dir() -> Optional[Path]:
    """Return the first existing secrets directory, or None."""
    override = os.getenv("STYLIST_SECRETS_DIR")
    candidates = [Path(override)] if override else [CLOUD_SECRETS_DIR, LOCAL_SECRETS_DIR]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return None


def _resolve_secret_file(name: str) -> Optional[Path]:
    base = get_secrets_dir()
    if base is None:
        return None

    path = base / name
    if path.is_dir():
        for inner in (path / name, path / "latest"):
            if inner.is_file():
                return inner
        return None

    return path if path.is_file() else None


def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Resolve a secret by name.

    Args:
        name: Secret name (also used as the env var name)
        default: Value returned when no source has the secret

    Returns:
        Secret value or default
    """
    if name in _cache:
        return _cache[name]

    value = None

    secret_file = _resolve_secret_file(name)
    if secret_file is not None:
        try:
            value = secret_file.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"Failed to read secret file for {name}: {e}")

    if not value:
        _ensure_dotenv()
        value = os.getenv(name)

    if not value:
        return default

    _cache[name] = value
    return value


def get_secret_json(name: str) -> Any:
    """Resolve a secret and parse it as JSON."""
    raw = get_secret(name)
    if raw is None:
        raise SecretError(f"Missing required secret: {name}")
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise SecretError(f"Secret {name} is not valid JSON")


def secret_exists(name: str) -> bool:
    """Check whether a secret is resolvable without exposing it."""
    try:
        return get_secret(name) is not None
    except Exception:
        return False


def verify_required_secrets(names: List[str]) -> None:
    """
    Verify that all required secrets exist.

    Raises:
        SecretError: listing every missing secret name
    """
    missing = [name for name in names if not secret_exists(name)]
    if missing:
        raise SecretError(f"Missing required secrets: {', '.join(missing)}")


def reset_secret_cache():
    """Clear cached secret values (for testing)."""
    _cache.clear()
