import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

BACKEND_GEMINI = "gemini"
BACKEND_OPENAI = "openai"
BACKENDS = (BACKEND_GEMINI, BACKEND_OPENAI)

DEFAULT_MODELS = {
    BACKEND_GEMINI: "gemini-2.5-flash",
    BACKEND_OPENAI: "gpt-4o-mini",
}

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    Running the server from a subdirectory (e.g. `src/`) still finds the
    project-level `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest .env into a mapping; does not mutate os.environ."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    env = {k: v.strip() for k, v in values.items() if k and isinstance(v, str)}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _lookup(dotenv_dir: Optional[str], *names: str) -> Optional[str]:
    """Return the first non-empty value for names, environment before .env."""
    for name in names:
        v = os.environ.get(name)
        if v and v.strip():
            return v.strip()
    env = _read_dotenv(dotenv_dir or os.getcwd())
    for name in names:
        v = env.get(name) or env.get(name.lower())
        if v:
            return v
    return None


def load_backend(dotenv_dir: Optional[str] = None) -> str:
    v = (_lookup(dotenv_dir, "DRISHTIFI_BACKEND") or BACKEND_GEMINI).lower()
    if v not in BACKENDS:
        log.warning("Unknown DRISHTIFI_BACKEND=%r; defaulting to '%s'", v, BACKEND_GEMINI)
        return BACKEND_GEMINI
    return v


def load_api_key(backend: str, dotenv_dir: Optional[str] = None) -> Optional[str]:
    """Return the credential for backend from env or .env.

    - gemini: API_KEY, then GEMINI_API_KEY
    - openai: OPENAI_API_KEY
    """
    if backend == BACKEND_OPENAI:
        return _lookup(dotenv_dir, "OPENAI_API_KEY")
    return _lookup(dotenv_dir, "API_KEY", "GEMINI_API_KEY")


def load_model(backend: str, dotenv_dir: Optional[str] = None) -> str:
    return _lookup(dotenv_dir, "DRISHTIFI_MODEL") or DEFAULT_MODELS[backend]


def load_timeout(dotenv_dir: Optional[str] = None) -> Optional[float]:
    """Transport timeout in seconds; None leaves the transport default in place."""
    raw = _lookup(dotenv_dir, "DRISHTIFI_TIMEOUT")
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        log.warning("DRISHTIFI_TIMEOUT=%r is not a number; ignoring", raw)
        return None
    return value if value > 0 else None


def load_default_theme(dotenv_dir: Optional[str] = None) -> str:
    v = (_lookup(dotenv_dir, "DRISHTIFI_THEME") or "light").lower()
    return v if v in ("light", "dark") else "light"


@dataclass
class GenerationConfig:
    backend: str
    model_name: str
    api_key: Optional[str]
    timeout_seconds: Optional[float] = None
    base_url: Optional[str] = None


def build_generation_config(dotenv_dir: Optional[str] = None) -> GenerationConfig:
    """Resolve backend, model, credential and transport settings in one pass."""
    backend = load_backend(dotenv_dir)
    if backend == BACKEND_OPENAI:
        base_url = _lookup(dotenv_dir, "OPENAI_BASE_URL")
    else:
        base_url = _lookup(dotenv_dir, "GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL
    cfg = GenerationConfig(
        backend=backend,
        model_name=load_model(backend, dotenv_dir),
        api_key=load_api_key(backend, dotenv_dir),
        timeout_seconds=load_timeout(dotenv_dir),
        base_url=base_url,
    )
    log.debug(
        "Generation config: backend=%s model=%s key=%s timeout=%s",
        cfg.backend,
        cfg.model_name,
        "set" if cfg.api_key else "missing",
        cfg.timeout_seconds,
    )
    return cfg
