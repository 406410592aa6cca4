"""Allow/disallow rule matching between producer and consumer names."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from amidiauto.core.errors import RuleValidationError
from amidiauto.core.model import Address, Rule, RuleKind, Strength

WILDCARD = "*"
LOGGER = logging.getLogger(__name__)

NameResolver = Callable[[Address], str]


def check_pattern(pattern: str) -> None:
    if not pattern:
        raise RuleValidationError("Pattern must not be empty")
    if pattern != WILDCARD and WILDCARD in pattern:
        raise RuleValidationError(
            f"Pattern '{pattern}' may only use '{WILDCARD}' as the whole pattern"
        )


def rule_strength(rule: Rule, output_name: str, input_name: str) -> Strength:
    """Score a single rule against an (output, input) name pair.

    Matching is by substring so one pattern covers every device of a product
    line sharing a common name fragment.
    """
    if rule.output == WILDCARD:
        if rule.input == WILDCARD:
            return Strength.VERY_VAGUE
        if rule.input in input_name:
            return Strength.VAGUE
        return Strength.NONE

    if rule.output in output_name:
        if rule.input == WILDCARD:
            return Strength.VAGUE
        if rule.input in input_name:
            return Strength.SPECIFIC
    return Strength.NONE


def evaluate_strength(rules: Iterable[Rule], output_name: str, input_name: str) -> Strength:
    best = Strength.NONE
    for rule in rules:
        strength = rule_strength(rule, output_name, input_name)
        if strength > best:
            best = strength
    return best


class RuleSet:
    def __init__(self) -> None:
        self.allow: list[Rule] = []
        self.disallow: list[Rule] = []

    @classmethod
    def allow_all(cls) -> RuleSet:
        rules = cls()
        rules.add_rule(RuleKind.ALLOW, WILDCARD, WILDCARD)
        return rules

    def add_rule(self, kind: RuleKind, output: str, input: str) -> bool:
        try:
            check_pattern(output)
            check_pattern(input)
        except RuleValidationError as exc:
            LOGGER.warning("Ignoring %s rule '%s' -> '%s': %s", kind.value, output, input, exc)
            return False

        if kind is RuleKind.ALLOW:
            LOGGER.info("Allowing '%s' -> '%s'", output, input)
            self.allow.append(Rule(output=output, input=input))
        else:
            LOGGER.info("Disallowing '%s' -> '%s'", output, input)
            self.disallow.append(Rule(output=output, input=input))
        return True

    def has_rules(self) -> bool:
        return bool(self.allow or self.disallow)

    def allows_names(self, output_name: str, input_name: str, minimum: Strength) -> bool:
        """Return the verdict for a name pair.

        A disallow match at least as strong as the best allow match wins, so
        ties resolve to deny.
        """
        allow = evaluate_strength(self.allow, output_name, input_name)
        deny = evaluate_strength(self.disallow, output_name, input_name)
        if allow < minimum:
            return False
        if deny is Strength.NONE:
            return True
        return allow > deny

    def is_allowed(
        self,
        output: Address,
        input: Address,
        minimum: Strength,
        resolve_name: NameResolver,
    ) -> bool:
        return self.allows_names(resolve_name(output), resolve_name(input), minimum)
