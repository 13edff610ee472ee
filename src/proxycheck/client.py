"""
Main ProxyCheckClient class tying configuration, HTTP client and services together.
"""

from typing import Any, Dict, Optional

from .config import ClientConfig, ConfigManager
from .http_client import HttpClient
from .services import CheckService, ListingService, RulesService, StatsService
from .types import RateLimitInfo

__version__ = "0.9.0"


class ProxyCheckClient:
    """
    Client for the proxycheck.io API.

    Example:
        >>> client = ProxyCheckClient(api_key="your-key")
        >>> result = client.check.check_address("8.8.8.8", {"vpn_detection": 1})
        >>> result["8.8.8.8"]["proxy"]
        'no'

    Args:
        config: Optional ClientConfig to start from
        **overrides: Individual config fields (api_key, timeout, retries, ...)
    """

    def __init__(self, config: Optional[ClientConfig] = None, **overrides: Any) -> None:
        self._config = ConfigManager(config, **overrides)
        self._http: Optional[HttpClient] = None
        self._build()

    def _build(self) -> None:
        """(Re)create the HTTP client and the services from the current configuration."""
        if self._http is not None:
            self._http.close()
        self._http = HttpClient(self._config.get_config(), self._config.get_logger())
        self._check = CheckService(self._http, self._config)
        self._listing = ListingService(self._http, self._config)
        self._rules = RulesService(self._http, self._config)
        self._stats = StatsService(self._http, self._config)

    @property
    def check(self) -> CheckService:
        return self._check

    @property
    def listing(self) -> ListingService:
        return self._listing

    @property
    def rules(self) -> RulesService:
        return self._rules

    @property
    def stats(self) -> StatsService:
        return self._stats

    def get_config(self) -> ClientConfig:
        return self._config.get_config()

    def update_config(self, **updates: Any) -> None:
        """
        Change configuration fields.

        The HTTP client is rebuilt so new timeouts, retries or hosts apply to
        the next request; the rate-limit snapshot starts empty again.
        """
        self._config.update_config(**updates)
        self._build()

    def get_api_key(self) -> str:
        return self._config.get_api_key()

    def set_api_key(self, api_key: str) -> None:
        self.update_config(api_key=api_key)

    def get_rate_limit_info(self) -> Optional[RateLimitInfo]:
        return self._http.get_rate_limit_info()

    def get_http_client(self) -> HttpClient:
        return self._http

    def get_config_manager(self) -> ConfigManager:
        return self._config

    def is_configured(self) -> bool:
        return bool(self._config.get_api_key())

    def get_client_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "version": __version__,
            "base_url": self._config.get_base_url(),
            "tls_enabled": self._config.is_tls_enabled(),
            "configured": self.is_configured(),
        }
        rate_limit_info = self.get_rate_limit_info()
        if rate_limit_info is not None:
            info["rate_limit_info"] = rate_limit_info
        return info

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ProxyCheckClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
