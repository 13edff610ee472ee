from .base import BaseService
from .check import CheckService, apply_block_decision
from .listing import ListingService
from .rules import RulesService
from .stats import StatsService

__all__ = [
    "BaseService",
    "CheckService",
    "ListingService",
    "RulesService",
    "StatsService",
    "apply_block_decision",
]
