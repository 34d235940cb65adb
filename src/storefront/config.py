"""Runtime settings, read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_MERGE_DELAY = 1.0
DEFAULT_HTTP_TIMEOUT = 10.0


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Storefront client configuration.

    ``storage`` picks the local storage adapter (``memory`` or ``file``) and
    ``remote`` the account cart/wishlist adapter (``http`` or ``fake``).
    """

    api_url: str = DEFAULT_API_URL
    storage: str = "file"
    storage_dir: str = ".storefront"
    remote: str = "http"
    merge_delay: float = DEFAULT_MERGE_DELAY
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.environ.get("STOREFRONT_API_URL", DEFAULT_API_URL).rstrip("/"),
            storage=os.environ.get("STOREFRONT_STORAGE", "file"),
            storage_dir=os.environ.get("STOREFRONT_STORAGE_DIR", ".storefront"),
            remote=os.environ.get("STOREFRONT_REMOTE", "http"),
            merge_delay=_float_env("STOREFRONT_MERGE_DELAY", DEFAULT_MERGE_DELAY),
            http_timeout=_float_env("STOREFRONT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        )
