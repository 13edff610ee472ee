"""
Value types passed between the engine and its callers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class RateLimitInfo:
    """Most recent rate-limit snapshot read from response headers."""

    limit: int
    remaining: int
    reset: datetime
    retry_after: Optional[int] = None


@dataclass
class RequestConfig:
    """One outgoing HTTP call; ``url`` is relative and already carries its query."""

    method: str
    url: str
    data: Optional[Union[str, Mapping[str, object]]] = None
    headers: Dict[str, str] = field(default_factory=dict)
