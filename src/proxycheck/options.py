"""
Option validation and request parameter derivation.

Callers pass loosely-typed option dicts; the pydantic models here check them
and the functions below turn them into the exact query parameters and form
bodies the API expects. None of them perform I/O.
"""

from typing import Any, Dict, List, Literal, Optional, Sequence, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

Addresses = Union[str, Sequence[str]]

VpnLevel = Literal[0, 1, 2, 3]
RiskLevel = Literal[0, 1, 2]
ListType = Literal["whitelist", "blacklist"]
ListAction = Literal["add", "remove", "set", "get"]
RuleAction = Literal["add", "remove", "set", "get", "test"]
StatType = Literal["detections", "queries", "usage"]


class _Options(BaseModel):
    """Common base: strict types, unknown keys dropped."""

    model_config = ConfigDict(extra="ignore", strict=True)

    api_key: Optional[str] = None
    tls_security: Optional[bool] = None


class ProxyCheckOptions(_Options):
    asn_data: Optional[bool] = None
    allowed_countries: Optional[List[str]] = None
    blocked_countries: Optional[List[str]] = None
    inf_engine: Optional[bool] = None
    risk_data: Optional[RiskLevel] = None
    vpn_detection: Optional[VpnLevel] = None
    day_restrictor: Optional[int] = Field(default=None, gt=0)
    query_tagging: Optional[bool] = None
    custom_tag: Optional[str] = None
    mask_address: Optional[bool] = None

    @field_validator("risk_data", "vpn_detection", mode="before")
    @classmethod
    def require_int_level(cls, v: Any) -> Any:
        # True == 1 and 1.0 == 1 would otherwise match the literal
        if v is not None and (isinstance(v, bool) or not isinstance(v, int)):
            raise ValueError(f"Expected an integer level, received {v!r}")
        return v


class ListOptions(_Options):
    list_selection: ListType
    list_action: ListAction
    list_entries: Optional[List[str]] = None


class RuleOptions(_Options):
    rule_selection: Optional[str] = None
    rule_action: RuleAction
    rule_entries: Optional[str] = None


class StatsOptions(_Options):
    stat_selection: StatType
    limit: Optional[int] = Field(default=None, gt=0, le=1000)
    offset: Optional[int] = Field(default=None, ge=0)


def _validate(options: Optional[Dict[str, Any]], model: Type[BaseModel], message: str) -> Dict[str, Any]:
    options = options or {}
    if not isinstance(options, dict):
        raise ValidationError(message, "options", options)

    try:
        parsed = model.model_validate(options)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(message, exc, options) from exc

    return parsed.model_dump(exclude_none=True)


def validate_options(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validate address-check options.

    Keys the check endpoint does not know are dropped rather than rejected.

    Args:
        options: Option dict using the fields of :class:`ProxyCheckOptions`

    Returns:
        A copy of the recognized options without the keys whose value is None

    Raises:
        ValidationError: With one ``{"path", "message"}`` entry per bad field
    """
    return _validate(options, ProxyCheckOptions, "Invalid ProxyCheck options")


def validate_list_options(options: Dict[str, Any]) -> Dict[str, Any]:
    return _validate(options, ListOptions, "Invalid list options provided")


def validate_rule_options(options: Dict[str, Any]) -> Dict[str, Any]:
    return _validate(options, RuleOptions, "Invalid rule options provided")


def validate_stats_options(options: Dict[str, Any]) -> Dict[str, Any]:
    return _validate(options, StatsOptions, "Invalid stats options provided")


def build_query_params(options: Dict[str, Any], api_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Map validated options onto the check endpoint's query vocabulary.

    An ``api_key`` in the options takes precedence over the ambient key.
    ``node``, ``port`` and ``seen`` are always requested so the API returns
    detailed results.
    """
    params: Dict[str, Any] = {}

    key = options.get("api_key") or api_key
    if key:
        params["key"] = key

    if options.get("vpn_detection") is not None:
        params["vpn"] = options["vpn_detection"]

    if options.get("asn_data"):
        params["asn"] = 1

    if options.get("risk_data") is not None:
        params["risk"] = options["risk_data"]

    if options.get("inf_engine"):
        params["inf"] = 1

    if options.get("day_restrictor"):
        params["days"] = options["day_restrictor"]

    params["node"] = 1
    params["port"] = 1
    params["seen"] = 1

    return params


def build_post_data(
    options: Dict[str, Any], addresses: Optional[Addresses] = None
) -> Dict[str, str]:
    """Build the form body for a check; ``ips`` is only set for batches."""
    data: Dict[str, str] = {}

    if should_use_post_method(addresses):
        data["ips"] = ",".join(addresses)

    if options.get("query_tagging") and options.get("custom_tag"):
        data["tag"] = options["custom_tag"]

    return data


def should_use_post_method(addresses: Optional[Addresses]) -> bool:
    """True only for a list of more than one address; a single-item list uses GET."""
    return isinstance(addresses, (list, tuple)) and len(addresses) > 1


def _mask_email(address: str) -> str:
    if "@" in address:
        domain = address.split("@")[1]
        return f"anonymous@{domain}"
    return address


def process_addresses(addresses: Addresses, mask_address: bool = False) -> Addresses:
    """Replace the local part of email addresses with ``anonymous`` when masking."""
    if not mask_address:
        return addresses

    if isinstance(addresses, (list, tuple)):
        return [_mask_email(address) for address in addresses]

    return _mask_email(addresses)


def merge_country_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Country filtering needs ASN data, so either country list turns it on."""
    merged = dict(options)

    if options.get("allowed_countries") or options.get("blocked_countries"):
        merged["asn_data"] = True

    return merged
