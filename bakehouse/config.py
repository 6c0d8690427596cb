from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_DEFAULT_ENV = "development"
_ENV_KEY = "FLASK_ENV"
_VALID_ENVS = {"development", "testing", "staging", "production"}
_FORBIDDEN_ENV_KEYS = ("APP_ENV", "BAKEHOUSE_ENV", "ENVIRONMENT")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EnvironmentInfo:
    name: str
    source: str
    raw_value: str


class EnvReader:
    """Typed access to environment variables; malformed values fall back and are remembered."""

    def __init__(self, data: Mapping[str, str] | None = None):
        self._data = dict(os.environ if data is None else data)
        self.warnings: list[str] = []

    def _value(self, key: str) -> str | None:
        value = self._data.get(key)
        if value is None:
            return None
        return value.strip() or None

    def _fallback(self, key: str, kind: str, value: str, default):
        self.warnings.append(f"{key} expected {kind} but received {value!r}; falling back to {default}.")
        return default

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def str(self, key: str, default: str | None = None) -> str | None:
        value = self._value(key)
        return default if value is None else value

    def int(self, key: str, default: int = 0) -> int:
        value = self._value(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return self._fallback(key, "integer", value, default)

    def float(self, key: str, default: float = 0.0) -> float:
        value = self._value(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return self._fallback(key, "float", value, default)

    def bool(self, key: str, default: bool = False) -> bool:
        value = self._value(key)
        if value is None:
            return default
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return self._fallback(key, "boolean", value, default)

    def levels(self, key: str) -> dict:
        """Parse `logger=LEVEL,other.logger=LEVEL` into a mapping."""
        value = self._value(key)
        if value is None:
            return {}
        parsed = {}
        for chunk in value.split(","):
            name, sep, level = chunk.partition("=")
            if not sep or not name.strip() or not level.strip():
                self.warnings.append(f"{key} entry {chunk.strip()!r} ignored; expected logger=LEVEL.")
                continue
            parsed[name.strip()] = level.strip().upper()
        return parsed


def _normalize_db_url(url: str | None) -> str | None:
    if not url:
        return None
    if url.startswith('postgres://'):
        return 'postgresql://' + url[len('postgres://'):]
    return url


def _resolve_environment(reader: EnvReader) -> EnvironmentInfo:
    for key in _FORBIDDEN_ENV_KEYS:
        if reader.raw(key) not in (None, ""):
            raise RuntimeError(
                f"{key} is not supported. Set {_ENV_KEY} to one of {sorted(_VALID_ENVS)} instead."
            )

    raw_value = reader.str(_ENV_KEY, _DEFAULT_ENV)
    normalized = raw_value.lower()
    if normalized not in _VALID_ENVS:
        raise RuntimeError(
            f"Invalid {_ENV_KEY}={raw_value!r}. Expected one of {sorted(_VALID_ENVS)}."
        )
    return EnvironmentInfo(name=normalized, source=_ENV_KEY, raw_value=raw_value)


def _database_uri(reader: EnvReader, fallback: str | None = None) -> str | None:
    return (
        _normalize_db_url(reader.str('DATABASE_INTERNAL_URL'))
        or _normalize_db_url(reader.str('DATABASE_URL'))
        or fallback
    )


def _default_sqlite_uri() -> str:
    instance_path = os.path.join(os.path.abspath(os.path.dirname(__file__)), '..', 'instance')
    return 'sqlite:///' + os.path.join(instance_path, 'bakehouse.db')


env = EnvReader()
ENV_INFO = _resolve_environment(env)


class BaseConfig:
    FLASK_ENV = ENV_INFO.name
    SECRET_KEY = env.str('FLASK_SECRET_KEY', 'devkey-please-change-in-production')

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': env.int('SQLALCHEMY_POOL_SIZE', 10),
        'max_overflow': env.int('SQLALCHEMY_MAX_OVERFLOW', 20),
        'pool_pre_ping': True,
        'pool_recycle': env.int('SQLALCHEMY_POOL_RECYCLE', 1800),
        'pool_timeout': env.int('SQLALCHEMY_POOL_TIMEOUT', 30),
    }

    LOG_LEVEL = env.str('LOG_LEVEL', 'WARNING')
    LOG_LEVELS = env.levels('LOG_LEVELS')
    LOG_REDACT_PII = env.bool('LOG_REDACT_PII', True)

    # Slack used when comparing floating-point stock against requirements.
    CONVERSION_TOLERANCE = env.float('CONVERSION_TOLERANCE', 1e-9)
    # Local calendar used for "production of the day" listings.
    BAKERY_TIMEZONE = env.str('BAKERY_TIMEZONE', 'UTC')


class DevelopmentConfig(BaseConfig):
    ENV = 'development'
    DEBUG = True
    LOG_LEVEL = env.str('LOG_LEVEL', 'DEBUG')
    SQLALCHEMY_DATABASE_URI = _database_uri(env, _default_sqlite_uri())
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_recycle': 3600}


class TestingConfig(BaseConfig):
    ENV = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}


class StagingConfig(BaseConfig):
    ENV = 'staging'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_uri(env)


class ProductionConfig(BaseConfig):
    ENV = 'production'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_uri(env)
    LOG_LEVEL = env.str('LOG_LEVEL', 'INFO')


config_map = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'staging': StagingConfig,
    'production': ProductionConfig,
}

Config = config_map[ENV_INFO.name]
ENV_DIAGNOSTICS = {
    'active': ENV_INFO.name,
    'source': ENV_INFO.source,
    'variables': {ENV_INFO.source: ENV_INFO.raw_value},
    'warnings': tuple(env.warnings),
}
