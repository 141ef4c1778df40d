import os
from typing import Union

from .types import ClientConfig

DEFAULT_PREFIX = "QUIP_"

# env suffix -> (ClientConfig field, converter)
_FIELDS = {
    "ACCESS_TOKEN": ("access_token", str),
    "API_URL": ("api_url", str),
    "WAIT_MS": ("base_wait_ms", float),
    "RETRY_LIMIT_503": ("unavailable_retry_limit", int),
    "RETRY_LIMIT_429": ("rate_limit_retry_limit", int),
    "COUNTER_CAPACITY": ("counter_capacity", int),
    "REQUEST_TIMEOUT": ("request_timeout", float),
}


def _parse_env_file(env_path: str) -> dict[str, str]:
    """Read KEY=VALUE lines from a .env file without touching os.environ.

    Blank lines, comments and lines without '=' are skipped; an ``export `` prefix
    and surrounding quotes are stripped.
    """
    values: dict[str, str] = {}
    try:
        with open(env_path) as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                if line.startswith("export "):
                    line = line[len("export ") :]
                key, val = line.split("=", 1)
                key = key.strip()
                if key:
                    values[key] = val.strip().strip('"').strip("'")
    except FileNotFoundError:
        pass
    return values


def load_config_from_env(
    prefix: str = DEFAULT_PREFIX,
    env_path: Union[str, None] = None,
    **overrides,
) -> ClientConfig:
    """Build a ClientConfig from ``<prefix>ACCESS_TOKEN``, ``<prefix>API_URL``, etc.

    Values from ``env_path`` are used only where the process environment has no
    value. Keyword ``overrides`` (ClientConfig field names) win over both.
    ``<prefix>COUNTER_CAPACITY`` may be ``none`` for an unbounded counter table.
    """
    file_env = _parse_env_file(env_path) if env_path else {}
    env_map: dict[str, str] = {**file_env, **os.environ}

    values: dict[str, object] = {}
    for suffix, (field_name, convert) in _FIELDS.items():
        raw = env_map.get(f"{prefix}{suffix}")
        if raw is None or raw == "":
            continue
        if field_name in ("counter_capacity", "request_timeout") and raw.lower() == "none":
            values[field_name] = None
            continue
        try:
            values[field_name] = convert(raw)
        except ValueError as e:
            raise ValueError(f"invalid value for {prefix}{suffix}: {raw!r}") from e
    values.update(overrides)
    if not values.get("access_token"):
        raise ValueError(f"{prefix}ACCESS_TOKEN is not set")
    return ClientConfig(**values)
