"""
Address checks against the detection endpoint.

A single address is looked up with GET and the address in the path; a list of
two or more goes out as one POST with the addresses in the form body.
"""

import time
from typing import Any, Dict, Optional, Sequence, Union

from .. import constants
from ..options import (
    build_post_data,
    build_query_params,
    merge_country_options,
    process_addresses,
    should_use_post_method,
    validate_options,
)
from .base import BaseService


def _in_countries(result: Dict[str, Any], countries: Sequence[str]) -> bool:
    if result.get("country") in countries:
        return True
    isocode = result.get("isocode")
    return bool(isocode) and isocode in countries


def apply_block_decision(
    response: Dict[str, Any], address: str, options: Optional[Dict[str, Any]] = None
) -> None:
    """
    Set ``block`` and ``block_reason`` on a single-address response.

    Disposable emails, proxies and VPNs are blocked; a result without a
    country is undecided ("na"). Blocked countries can turn a "no" into
    "yes", allowed countries can turn a "yes" back into "no".
    """
    options = options or {}
    result = response.get(address)

    if not isinstance(result, dict):
        response["block"] = "na"
        response["block_reason"] = "na"
        return

    if "@" in address and result.get("disposable") is not None:
        disposable = result["disposable"] == "yes"
        response["block"] = "yes" if disposable else "no"
        response["block_reason"] = "disposable" if disposable else "na"
        return

    if result.get("proxy") == "yes" and result.get("type") == "VPN":
        response["block"] = "yes"
        response["block_reason"] = "vpn"
    elif result.get("proxy") == "yes":
        response["block"] = "yes"
        response["block_reason"] = "proxy"
    else:
        response["block"] = "no"
        response["block_reason"] = "na"

    if not result.get("country"):
        response["block"] = "na"
        response["block_reason"] = "na"
        return

    blocked = options.get("blocked_countries")
    if response["block"] == "no" and blocked and _in_countries(result, blocked):
        response["block"] = "yes"
        response["block_reason"] = "country"

    allowed = options.get("allowed_countries")
    if response["block"] == "yes" and allowed and _in_countries(result, allowed):
        response["block"] = "no"
        response["block_reason"] = "na"


class CheckService(BaseService):
    """Checks IP addresses and email addresses."""

    service_name = "Check"

    def check_address(self, address: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Check one IP address or email; the response includes a block decision."""
        return self.check_addresses(address, options)

    def check_addresses(
        self,
        addresses: Union[str, Sequence[str]],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Check one or more IP addresses or emails.

        Args:
            addresses: A single address or a list of addresses
            options: Check options (see ``proxycheck.options.PROXYCHECK_OPTION_RULES``)

        Returns:
            The API response; results are keyed by address

        Raises:
            ValidationError: Before any request when the input is invalid
            ProxyCheckError: When the request fails
        """
        options = options or {}
        address_count = 1 if isinstance(addresses, str) else len(addresses or [])
        start_time = time.monotonic()

        self.logger.info(
            "Starting address check",
            {
                "operation": "check_addresses",
                "service": self.service_name,
                "address_count": address_count,
                "options": sorted(options),
            },
        )

        try:
            self.validate_configuration()
            self.validate_addresses(addresses)
            validated = validate_options(options)

            processed = process_addresses(addresses, validated.get("mask_address", False))
            merged = merge_country_options(validated)

            self.logger.debug(
                "Address processing completed",
                {
                    "operation": "check_addresses",
                    "service": self.service_name,
                    "processed_count": 1 if isinstance(processed, str) else len(processed),
                    "masking_enabled": validated.get("mask_address", False),
                    "asn_enabled": merged.get("asn_data", False),
                },
            )

            query_params = build_query_params(merged, self.get_api_key())
            post_data = build_post_data(merged, processed)

            if should_use_post_method(processed):
                url = self.http.build_url(constants.CHECK_ENDPOINT, query_params)
                self.logger.debug(
                    "Making POST request to check endpoint",
                    {"operation": "check_addresses", "method": "POST", "url": url},
                )
                response = self.http.post_form(url, post_data)
            else:
                single = processed if isinstance(processed, str) else processed[0]
                url = self.http.build_url_with_address(constants.CHECK_ENDPOINT, single, query_params)
                self.logger.debug(
                    "Making GET request to check endpoint",
                    {"operation": "check_addresses", "method": "GET", "url": url},
                )
                response = self.http.get(url)

            if isinstance(addresses, str) and isinstance(response, dict):
                apply_block_decision(response, processed, merged)

            self.logger.info(
                "Address check completed successfully",
                {
                    "operation": "check_addresses",
                    "service": self.service_name,
                    "address_count": address_count,
                    "duration": int((time.monotonic() - start_time) * 1000),
                    "response_status": response.get("status") if isinstance(response, dict) else None,
                },
            )
            return response

        except Exception as error:
            self.logger.error(
                "Address check failed",
                error,
                {
                    "operation": "check_addresses",
                    "service": self.service_name,
                    "address_count": address_count,
                    "duration": int((time.monotonic() - start_time) * 1000),
                },
            )
            raise

    def _result(self, response: Dict[str, Any], address: str) -> Dict[str, Any]:
        result = response.get(address)
        return result if isinstance(result, dict) else {}

    def is_proxy(self, address: str, options: Optional[Dict[str, Any]] = None) -> bool:
        response = self.check_address(address, options)
        return self._result(response, address).get("proxy") == "yes"

    def is_vpn(self, address: str, options: Optional[Dict[str, Any]] = None) -> bool:
        response = self.check_address(address, {**(options or {}), "vpn_detection": 1})
        return self._result(response, address).get("type") == "VPN"

    def is_disposable_email(self, email: str, options: Optional[Dict[str, Any]] = None) -> bool:
        response = self.check_address(email, options)
        return self._result(response, email).get("disposable") == "yes"

    def get_risk_score(self, address: str, options: Optional[Dict[str, Any]] = None) -> Optional[int]:
        response = self.check_address(address, {**(options or {}), "risk_data": 2})
        return self._result(response, address).get("risk")

    def get_detailed_info(
        self, address: str, options: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Check with ASN data, detailed risk and the strictest VPN detection unless overridden."""
        detailed = {"asn_data": True, "risk_data": 2, "vpn_detection": 3}
        detailed.update({key: value for key, value in (options or {}).items() if value is not None})
        response = self.check_address(address, detailed)
        result = response.get(address)
        return result if isinstance(result, dict) else None
