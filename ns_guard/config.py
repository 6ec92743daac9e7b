# ns_guard/config.py
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml


class ConfigError(Exception):
    pass


_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")

# Settings field -> environment variable
ENV_VARS = {
    "port": "NS_GUARD_PORT",
    "log_file": "NS_GUARD_LOG_FILE",
    "log_level": "NS_GUARD_LOG_LEVEL",
    "cert_file": "NS_GUARD_CERT_FILE",
    "key_file": "NS_GUARD_KEY_FILE",
    "client_ca_file": "NS_GUARD_CLIENT_CA_FILE",
    "client_auth": "NS_GUARD_CLIENT_AUTH",
    "admit_all": "NS_GUARD_ADMIT_ALL",
}


def parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


@dataclass(frozen=True)
class Settings:
    port: int = 443
    log_file: str = "/var/log/nslifecycle.log"
    log_level: str = "info"
    cert_file: str = "/var/lib/kubernetes/kubernetes.pem"
    key_file: str = "/var/lib/kubernetes/kubernetes-key.pem"
    client_ca_file: str = "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"
    client_auth: bool = False
    # Admits every namespace deletion without validation.
    admit_all: bool = False

    def merged(self, overrides: Dict[str, Any]) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


_FIELD_TYPES = {f.name: f.type for f in fields(Settings)}


def coerce(name: str, value: Any, source: str) -> Any:
    """
    Convert a raw setting to the type of its Settings field.

    Raises ConfigError for values that do not convert. Booleans only accept
    real booleans or the usual true/false words; a non-empty string is never
    truthy on its own.
    """
    kind = _FIELD_TYPES[name]
    try:
        if kind in (bool, "bool"):
            if isinstance(value, bool):
                return value
            if isinstance(value, str):
                return parse_bool(value)
            raise ValueError(f"not a boolean: {value!r}")
        if kind in (int, "int"):
            if isinstance(value, bool):
                raise ValueError(f"not an integer: {value!r}")
            return int(value)
        if not isinstance(value, str):
            raise ValueError(f"not a string: {value!r}")
        return value
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{source}: invalid value for {name}: {e}") from e


def load_env() -> Dict[str, Any]:
    """Settings overrides from NS_GUARD_* environment variables."""
    out: Dict[str, Any] = {}
    for name, var in ENV_VARS.items():
        raw = os.getenv(var)
        if raw is not None:
            out[name] = coerce(name, raw, var)
    return out


def load_settings_file(path: str) -> Dict[str, Any]:
    """
    Load settings overrides from a YAML file.

    Keys use the Settings field names (port, log_file, admit_all, ...).
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    unknown = sorted(str(k) for k in set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(f"{path}: unknown setting(s): {', '.join(unknown)}")
    return {k: coerce(k, v, path) for k, v in data.items() if v is not None}


def load_settings(path: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build Settings with precedence: overrides > YAML file > environment > defaults.
    """
    base = Settings().merged(load_env())
    path = path or os.getenv("NS_GUARD_CONFIG")
    if path:
        base = base.merged(load_settings_file(path))
    return base.merged(overrides)
