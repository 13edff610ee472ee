"""
Usage statistics and exports.
"""

from typing import Any, Dict, Optional

from .. import constants
from ..exceptions import ValidationError
from ..options import validate_stats_options
from .base import BaseService

MAX_LIMIT = 1000


class StatsService(BaseService):
    """Reads detection, query and usage statistics from the export endpoint."""

    service_name = "Stats"

    def get_detections(self, limit: Optional[int] = 100, offset: Optional[int] = 0) -> Dict[str, Any]:
        return self._get_stats("detections", limit, offset)

    def get_queries(self, limit: Optional[int] = 100, offset: Optional[int] = 0) -> Dict[str, Any]:
        return self._get_stats("queries", limit, offset)

    def get_usage(self) -> Dict[str, Any]:
        return self._get_stats("usage")

    def export_detections(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Dict[str, Any]:
        return self._get_stats("detections", limit, offset)

    def export_queries(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Dict[str, Any]:
        return self._get_stats("queries", limit, offset)

    def export_usage(self) -> Dict[str, Any]:
        return self.get_usage()

    def get_detections_paginated(self, page: int = 1, page_size: int = 100) -> Dict[str, Any]:
        return self.get_detections(page_size, (page - 1) * page_size)

    def get_queries_paginated(self, page: int = 1, page_size: int = 100) -> Dict[str, Any]:
        return self.get_queries(page_size, (page - 1) * page_size)

    def get_recent_detections(self, count: int = 50) -> Dict[str, Any]:
        return self.get_detections(count, 0)

    def get_recent_queries(self, count: int = 50) -> Dict[str, Any]:
        return self.get_queries(count, 0)

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Fetch detections, queries and usage, one request after another."""
        return {
            "detections": self.get_detections(),
            "queries": self.get_queries(),
            "usage": self.get_usage(),
        }

    def _get_stats(
        self, stat_type: str, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Dict[str, Any]:
        self.validate_configuration()

        options: Dict[str, Any] = {
            "api_key": self.get_api_key(),
            "tls_security": self.config.is_tls_enabled(),
            "stat_selection": stat_type,
        }

        paginated = stat_type in ("detections", "queries")
        if paginated:
            if limit is not None:
                options["limit"] = self._validate_limit(limit)
            if offset is not None:
                options["offset"] = self._validate_offset(offset)

        validated = validate_stats_options(options)

        params: Dict[str, Any] = {"key": validated["api_key"]}
        if paginated:
            params["json"] = 1
        # Only the detections export honours pagination
        if stat_type == "detections":
            params["limit"] = validated.get("limit")
            params["offset"] = validated.get("offset")

        url = self.http.build_url(f"{constants.EXPORT_ENDPOINT}{validated['stat_selection']}/", params)
        return self.http.get(url)

    @staticmethod
    def _validate_limit(limit: Any) -> int:
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise ValidationError("Limit must be a positive integer", "limit", limit)
        if limit > MAX_LIMIT:
            raise ValidationError(f"Limit cannot exceed {MAX_LIMIT}", "limit", limit)
        return limit

    @staticmethod
    def _validate_offset(offset: Any) -> int:
        if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
            raise ValidationError("Offset must be a non-negative integer", "offset", offset)
        return offset
