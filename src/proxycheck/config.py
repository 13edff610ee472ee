"""
Client configuration.

Values are resolved per field from explicit arguments, then ``PROXYCHECK_*``
environment variables, then the package defaults. The resolved
:class:`ClientConfig` is immutable; :meth:`ConfigManager.update_config`
builds a new one and recreates the logger.
"""

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from . import constants
from .exceptions import ValidationError
from .logger import StructuredLogger, create_logger

ENV_API_KEY = "PROXYCHECK_API_KEY"
ENV_BASE_URL = "PROXYCHECK_BASE_URL"
ENV_TIMEOUT = "PROXYCHECK_TIMEOUT"
ENV_RETRIES = "PROXYCHECK_RETRIES"
ENV_RETRY_DELAY = "PROXYCHECK_RETRY_DELAY"
ENV_TLS_SECURITY = "PROXYCHECK_TLS_SECURITY"


@dataclass(frozen=True)
class ClientConfig:
    api_key: str
    base_url: str = constants.DEFAULT_BASE_URL
    timeout: float = constants.DEFAULT_TIMEOUT
    retries: int = constants.DEFAULT_RETRIES
    retry_delay: float = constants.DEFAULT_RETRY_DELAY
    tls_security: bool = constants.DEFAULT_TLS_SECURITY
    user_agent: str = constants.DEFAULT_USER_AGENT
    logging: Optional[Mapping[str, Any]] = None

    @property
    def scheme(self) -> str:
        return "https" if self.tls_security else "http"

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.base_url}"


def _env_number(name: str) -> Any:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        # Left as-is so validation reports it
        return raw


def _environment_config() -> Dict[str, Any]:
    config: Dict[str, Any] = {
        "api_key": os.environ.get(ENV_API_KEY) or None,
        "base_url": os.environ.get(ENV_BASE_URL) or None,
        "timeout": _env_number(ENV_TIMEOUT),
        "retries": _env_number(ENV_RETRIES),
        "retry_delay": _env_number(ENV_RETRY_DELAY),
        "tls_security": None,
    }
    tls = os.environ.get(ENV_TLS_SECURITY)
    if tls:
        config["tls_security"] = tls == "true"
    return config


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


class LoggingSettings(BaseModel):
    """Schema for the ``logging`` mapping of a client configuration."""

    model_config = ConfigDict(extra="forbid")

    level: Optional[Literal["debug", "info", "warn", "warning", "error", "critical", "silent"]] = None
    format: Optional[Literal["json", "pretty"]] = None
    timestamp: Optional[bool] = None
    output: Optional[Callable[[Dict[str, Any]], None]] = None
    log_file: Optional[str] = None
    error_file: Optional[str] = None
    console_output: Optional[bool] = None


class ClientSettings(BaseModel):
    """Schema every resolved :class:`ClientConfig` must satisfy."""

    model_config = ConfigDict(extra="forbid")

    api_key: str
    base_url: str = Field(default=constants.DEFAULT_BASE_URL, min_length=1)
    timeout: float = Field(default=constants.DEFAULT_TIMEOUT, gt=0)
    retries: int = Field(default=constants.DEFAULT_RETRIES, ge=0)
    retry_delay: float = Field(default=constants.DEFAULT_RETRY_DELAY, ge=0)
    tls_security: bool = constants.DEFAULT_TLS_SECURITY
    user_agent: str = constants.DEFAULT_USER_AGENT
    logging: Optional[LoggingSettings] = None

    @field_validator("api_key", mode="before")
    @classmethod
    def require_api_key(cls, v: Any) -> Any:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("API key is required")
        return v


def validate_config(config: ClientConfig) -> ClientConfig:
    """
    Check ``config`` against :class:`ClientSettings`.

    Returns:
        An equivalent ClientConfig with values coerced to their declared types

    Raises:
        ValidationError: Listing every invalid field
    """
    values = {f.name: getattr(config, f.name) for f in dataclasses.fields(ClientConfig)}
    if isinstance(values["logging"], Mapping):
        values["logging"] = dict(values["logging"])

    try:
        settings = ClientSettings.model_validate(values)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic("Invalid configuration", exc, config) from exc

    resolved = settings.model_dump(exclude={"logging"})
    if settings.logging is not None:
        resolved["logging"] = settings.logging.model_dump(exclude_none=True)
    return ClientConfig(**resolved)


def build_config(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
    tls_security: Optional[bool] = None,
    user_agent: Optional[str] = None,
    logging: Optional[Mapping[str, Any]] = None,
) -> ClientConfig:
    """Resolve each field from the argument, the environment, then the default."""
    env = _environment_config()
    return ClientConfig(
        api_key=_first(api_key, env["api_key"]) or "",
        base_url=_first(base_url, env["base_url"], constants.DEFAULT_BASE_URL),
        timeout=_first(timeout, env["timeout"], constants.DEFAULT_TIMEOUT),
        retries=_first(retries, env["retries"], constants.DEFAULT_RETRIES),
        retry_delay=_first(retry_delay, env["retry_delay"], constants.DEFAULT_RETRY_DELAY),
        tls_security=_first(tls_security, env["tls_security"], constants.DEFAULT_TLS_SECURITY),
        user_agent=_first(user_agent, constants.DEFAULT_USER_AGENT),
        logging=logging,
    )


class ConfigManager:
    """
    Owns the resolved configuration and the logger built from it.

    Args:
        config: An existing ClientConfig to start from
        **overrides: Individual ClientConfig fields; take precedence over ``config``

    Raises:
        ValidationError: If the resolved configuration is invalid
    """

    def __init__(self, config: Optional[ClientConfig] = None, **overrides: Any) -> None:
        values = self._values(config) if config is not None else {}
        values.update(overrides)
        self._config = self._build(values)
        self._logger = create_logger(self._config.logging)

    @staticmethod
    def _values(config: ClientConfig) -> Dict[str, Any]:
        return {f.name: getattr(config, f.name) for f in dataclasses.fields(ClientConfig)}

    @staticmethod
    def _build(values: Dict[str, Any]) -> ClientConfig:
        unknown = set(values) - {f.name for f in dataclasses.fields(ClientConfig)}
        if unknown:
            raise ValidationError(
                "Invalid configuration",
                None,
                values,
                [{"path": name, "message": "Unrecognized option"} for name in sorted(unknown)],
            )
        return validate_config(build_config(**values))

    def get_config(self) -> ClientConfig:
        return self._config

    def update_config(self, **updates: Any) -> None:
        """Apply ``updates`` on top of the current values, revalidate and rebuild the logger."""
        values = self._values(self._config)
        values.update(updates)
        self._config = self._build(values)
        self._logger = create_logger(self._config.logging)

    def get_api_key(self) -> str:
        return self._config.api_key

    def set_api_key(self, api_key: str) -> None:
        self.update_config(api_key=api_key)

    def get_base_url(self) -> str:
        """Base URL including the scheme, e.g. ``https://proxycheck.io``."""
        return self._config.origin

    def is_tls_enabled(self) -> bool:
        return self._config.tls_security

    def get_timeout(self) -> float:
        return self._config.timeout

    def get_retry_config(self) -> Dict[str, float]:
        return {"retries": self._config.retries, "retry_delay": self._config.retry_delay}

    def get_user_agent(self) -> str:
        return self._config.user_agent

    def get_logger(self) -> StructuredLogger:
        return self._logger
