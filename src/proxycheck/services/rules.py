"""
Custom detection rule management.
"""

import re
from typing import Any, Dict, Optional

from .. import constants
from ..exceptions import ValidationError
from ..options import validate_rule_options
from .base import BaseService

RULE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
RULE_NAME_MAX_LENGTH = 50
RULE_OPERATOR_PATTERN = re.compile(r"\b(AND|OR|NOT|==|!=|>|<|>=|<=)\b", re.IGNORECASE)


class RulesService(BaseService):
    """Creates, updates, removes and tests server-side rules."""

    service_name = "Rules"

    def add_rule(self, name: str, conditions: str) -> Dict[str, Any]:
        return self._manage_rule("add", name, conditions)

    def remove_rule(self, name: str) -> Dict[str, Any]:
        return self._manage_rule("remove", name)

    def set_rule(self, name: str, conditions: str) -> Dict[str, Any]:
        return self._manage_rule("set", name, conditions)

    def get_rules(self) -> Dict[str, Any]:
        return self._manage_rule("get")

    def test_rule(self, name: str) -> Dict[str, Any]:
        return self._manage_rule("test", name)

    def create_rule(self, name: str, conditions: str) -> Dict[str, Any]:
        """Validate the name and conditions locally, then add the rule."""
        self._validate_rule_name(name)
        self._validate_rule_conditions(conditions)
        return self.add_rule(name, conditions)

    def update_rule(self, name: str, conditions: str) -> Dict[str, Any]:
        self._validate_rule_name(name)
        self._validate_rule_conditions(conditions)
        return self.set_rule(name, conditions)

    def delete_rule(self, name: str) -> Dict[str, Any]:
        self._validate_rule_name(name)
        return self.remove_rule(name)

    def list_rules(self) -> Dict[str, Any]:
        return self.get_rules()

    def validate_rule(self, name: str) -> Dict[str, Any]:
        self._validate_rule_name(name)
        return self.test_rule(name)

    def _manage_rule(
        self, action: str, name: Optional[str] = None, conditions: Optional[str] = None
    ) -> Dict[str, Any]:
        self.validate_configuration()

        validated = validate_rule_options(
            {
                "api_key": self.get_api_key(),
                "tls_security": self.config.is_tls_enabled(),
                "rule_action": action,
                "rule_selection": name,
                "rule_entries": conditions,
            }
        )

        data = {}
        if validated.get("rule_selection"):
            data["name"] = validated["rule_selection"]
        if validated.get("rule_entries"):
            data["data"] = validated["rule_entries"]

        url = self.http.build_url(f"{constants.RULES_ENDPOINT}{action}/", {"key": validated["api_key"]})
        return self.http.post_form(url, data)

    @staticmethod
    def _validate_rule_name(name: Any) -> None:
        if not name or not isinstance(name, str):
            raise ValidationError("Rule name is required and must be a string", "name", name)
        if not name.strip():
            raise ValidationError("Rule name cannot be empty", "name", name)
        if not RULE_NAME_PATTERN.match(name):
            raise ValidationError(
                "Rule name can only contain letters, numbers, and underscores", "name", name
            )
        if len(name) > RULE_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Rule name cannot exceed {RULE_NAME_MAX_LENGTH} characters", "name", name
            )

    @staticmethod
    def _validate_rule_conditions(conditions: Any) -> None:
        if not conditions or not isinstance(conditions, str):
            raise ValidationError(
                "Rule conditions are required and must be a string", "conditions", conditions
            )
        if not conditions.strip():
            raise ValidationError("Rule conditions cannot be empty", "conditions", conditions)
        if not RULE_OPERATOR_PATTERN.search(conditions):
            raise ValidationError(
                "Rule conditions must contain valid logical operators "
                "(AND, OR, NOT, ==, !=, >, <, >=, <=)",
                "conditions",
                conditions,
            )
