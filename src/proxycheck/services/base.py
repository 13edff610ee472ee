"""
Shared plumbing for the API services.
"""

from typing import Sequence, Union

from ..config import ConfigManager
from ..exceptions import ValidationError
from ..http_client import HttpClient


class BaseService:
    """Base class holding the HTTP client, the config manager and the logger."""

    service_name = "Base"

    def __init__(self, http: HttpClient, config: ConfigManager) -> None:
        self.http = http
        self.config = config
        self.logger = config.get_logger()

    def get_api_key(self) -> str:
        return self.config.get_api_key()

    def validate_configuration(self) -> None:
        """Fail before any request when no API key is configured."""
        api_key = self.get_api_key()
        if not api_key:
            raise ValidationError("API key is required but not configured", "api_key", api_key)

    def validate_addresses(self, addresses: Union[str, Sequence[str]]) -> None:
        if not addresses:
            raise ValidationError("At least one address is required", "addresses", addresses)

        address_list = [addresses] if isinstance(addresses, str) else list(addresses)

        for address in address_list:
            if not isinstance(address, str) or not address.strip():
                raise ValidationError("Address must be a non-empty string", "addresses", address)
