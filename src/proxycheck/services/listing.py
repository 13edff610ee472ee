"""
Whitelist and blacklist management.
"""

from typing import Any, Dict, Optional, Sequence, Union

from .. import constants
from ..exceptions import ValidationError
from ..options import validate_list_options
from .base import BaseService

Entries = Union[str, Sequence[str]]


class ListingService(BaseService):
    """Manages the account's whitelist and blacklist."""

    service_name = "Listing"

    def add_to_list(self, list_type: str, entries: Entries) -> Dict[str, Any]:
        return self._manage_list(list_type, "add", entries)

    def remove_from_list(self, list_type: str, entries: Entries) -> Dict[str, Any]:
        return self._manage_list(list_type, "remove", entries)

    def set_list(self, list_type: str, entries: Entries) -> Dict[str, Any]:
        """Replace every entry of the list."""
        return self._manage_list(list_type, "set", entries)

    def get_list(self, list_type: str) -> Dict[str, Any]:
        return self._manage_list(list_type, "get")

    def clear_list(self, list_type: str) -> Dict[str, Any]:
        return self._manage_list(list_type, "set", [])

    def add_to_whitelist(self, entries: Entries) -> Dict[str, Any]:
        return self.add_to_list("whitelist", entries)

    def remove_from_whitelist(self, entries: Entries) -> Dict[str, Any]:
        return self.remove_from_list("whitelist", entries)

    def set_whitelist(self, entries: Entries) -> Dict[str, Any]:
        return self.set_list("whitelist", entries)

    def get_whitelist(self) -> Dict[str, Any]:
        return self.get_list("whitelist")

    def clear_whitelist(self) -> Dict[str, Any]:
        return self.clear_list("whitelist")

    def add_to_blacklist(self, entries: Entries) -> Dict[str, Any]:
        return self.add_to_list("blacklist", entries)

    def remove_from_blacklist(self, entries: Entries) -> Dict[str, Any]:
        return self.remove_from_list("blacklist", entries)

    def set_blacklist(self, entries: Entries) -> Dict[str, Any]:
        return self.set_list("blacklist", entries)

    def get_blacklist(self) -> Dict[str, Any]:
        return self.get_list("blacklist")

    def clear_blacklist(self) -> Dict[str, Any]:
        return self.clear_list("blacklist")

    def _manage_list(self, list_type: str, action: str, entries: Optional[Entries] = None) -> Dict[str, Any]:
        self.validate_configuration()

        options: Dict[str, Any] = {
            "api_key": self.get_api_key(),
            "tls_security": self.config.is_tls_enabled(),
            "list_selection": list_type,
            "list_action": action,
        }

        if entries is not None:
            entry_list = [entries] if isinstance(entries, str) else list(entries)
            if action != "get" and entry_list:
                self._validate_entries(entry_list)
            options["list_entries"] = entry_list

        validated = validate_list_options(options)

        # The API calls retrieval "print" and returns every list at once
        if action == "get":
            url = self.http.build_url(f"{constants.LISTS_ENDPOINT}print/", {"key": validated["api_key"]})
            return self.http.get(url)

        url = self.http.build_url(
            f"{constants.LISTS_ENDPOINT}{action}/{list_type}/", {"key": validated["api_key"]}
        )
        entry_list = validated.get("list_entries")
        data = {"data": "\r\n".join(entry_list)} if entry_list else None
        return self.http.post_form(url, data)

    @staticmethod
    def _validate_entries(entries: Sequence[Any]) -> None:
        for entry in entries:
            if not isinstance(entry, str) or not entry.strip():
                raise ValidationError("Each entry must be a non-empty string", "entries", entry)
