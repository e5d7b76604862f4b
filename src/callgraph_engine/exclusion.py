# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Method exclusion policy.

Framework lifecycle methods (for example Rails controller actions) are invoked
by the framework, not by user code. They stay valid graph callees but are not
offered as clickable definitions or jump targets.

The rule table is injectable so the core stays framework-agnostic: the default
policy carries a single Rails rule, and hosts can pass their own rules.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern

logger = logging.getLogger(__name__)

RAILS_STANDARD_ACTIONS = frozenset({"index", "show", "new", "edit", "create", "update", "destroy"})


@dataclass(frozen=True)
class ExclusionRule:
    """One exclusion rule.

    A method is excluded by this rule when its file path matches file_pattern
    and predicate(method_name) is true.
    """

    framework: str
    file_pattern: Pattern[str]
    predicate: Callable[[str], bool]
    description: str

    def applies_to(self, method_name: str, file_path: str) -> bool:
        return bool(self.file_pattern.search(file_path)) and self.predicate(method_name)


RAILS_CONTROLLER_ACTIONS_RULE = ExclusionRule(
    framework="rails",
    file_pattern=re.compile(r"_controller\.rb$"),
    predicate=lambda name: name in RAILS_STANDARD_ACTIONS,
    description="Rails controller standard actions are invoked by the router",
)

DEFAULT_RULES = (RAILS_CONTROLLER_ACTIONS_RULE,)


class MethodExclusionPolicy:
    """Decides which method definitions are hidden from navigation.

    Args:
        rules: Exclusion rules to apply. None means DEFAULT_RULES; an empty
            list excludes nothing.
    """

    def __init__(self, rules: Optional[List[ExclusionRule]] = None) -> None:
        self._rules: List[ExclusionRule] = list(DEFAULT_RULES if rules is None else rules)

    def add_rule(self, rule: ExclusionRule) -> None:
        """Append a rule. Raises TypeError for anything that is not an ExclusionRule."""
        if not isinstance(rule, ExclusionRule):
            raise TypeError(f"Rule must be an ExclusionRule instance, got {type(rule)}")
        self._rules.append(rule)
        logger.debug(f"Registered exclusion rule for framework '{rule.framework}'")

    def without_frameworks(self, frameworks: List[str]) -> "MethodExclusionPolicy":
        """Return a copy of this policy with every rule of the named frameworks removed."""
        return MethodExclusionPolicy([r for r in self._rules if r.framework not in frameworks])

    def get_applied_rule(self, method_name: str, file_path: str) -> Optional[ExclusionRule]:
        """Return the first rule that excludes the method, or None."""
        for rule in self._rules:
            if rule.applies_to(method_name, file_path):
                return rule
        return None

    def is_excluded_method(self, method_name: str, file_path: str) -> bool:
        return self.get_applied_rule(method_name, file_path) is not None

    def is_clickable_method(self, method_name: str, file_path: str) -> bool:
        """Whether the definition should be rendered as a clickable target."""
        return not self.is_excluded_method(method_name, file_path)

    def is_jump_target_method(self, method_name: str, file_path: str) -> bool:
        """Whether jump-to-definition may land on this method."""
        return not self.is_excluded_method(method_name, file_path)

    def get_all_rules(self) -> List[ExclusionRule]:
        return list(self._rules)
