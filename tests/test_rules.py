from amidiauto.core.model import Address, Rule, RuleKind, Strength
from amidiauto.core.rules import RuleSet, evaluate_strength, rule_strength


def _names(table: dict[int, str]):
    return lambda address: table.get(address.client, "")


def test_rule_strength_levels() -> None:
    assert rule_strength(Rule("*", "*"), "Keys", "Synth") == Strength.VERY_VAGUE
    assert rule_strength(Rule("*", "Syn"), "Keys", "Synth") == Strength.VAGUE
    assert rule_strength(Rule("Key", "*"), "Keys", "Synth") == Strength.VAGUE
    assert rule_strength(Rule("Key", "Syn"), "Keys", "Synth") == Strength.SPECIFIC
    assert rule_strength(Rule("Key", "Drum"), "Keys", "Synth") == Strength.NONE
    assert rule_strength(Rule("Pad", "*"), "Keys", "Synth") == Strength.NONE


def test_substring_matches_whole_product_line() -> None:
    rule = Rule("Launchpad", "*")
    assert rule_strength(rule, "Launchpad Mini MK3", "x") == Strength.VAGUE
    assert rule_strength(rule, "Novation Launchpad X", "x") == Strength.VAGUE


def test_evaluate_strength_is_monotonic() -> None:
    rules = [Rule("Keys", "Synth")]
    before = evaluate_strength(rules, "Keys", "Synth")
    rules.append(Rule("*", "*"))
    assert evaluate_strength(rules, "Keys", "Synth") >= before
    assert evaluate_strength([], "Keys", "Synth") == Strength.NONE


def test_default_rule_allows_everything() -> None:
    rules = RuleSet.allow_all()
    assert rules.has_rules()
    assert rules.allows_names("Keys", "Synth", Strength.VERY_VAGUE)


def test_no_rules_denies_above_none() -> None:
    rules = RuleSet()
    assert not rules.has_rules()
    assert not rules.allows_names("Keys", "Synth", Strength.VERY_VAGUE)
    assert rules.allows_names("Keys", "Synth", Strength.NONE)


def test_specific_disallow_beats_wildcard_allow() -> None:
    rules = RuleSet()
    rules.add_rule(RuleKind.ALLOW, "*", "*")
    rules.add_rule(RuleKind.DISALLOW, "Keys", "Synth")
    assert not rules.allows_names("Keys", "Synth", Strength.VERY_VAGUE)
    assert rules.allows_names("Keys", "Drums", Strength.VERY_VAGUE)


def test_equal_strength_resolves_to_deny() -> None:
    rules = RuleSet()
    rules.add_rule(RuleKind.ALLOW, "Keys", "*")
    rules.add_rule(RuleKind.DISALLOW, "*", "Synth")
    assert not rules.allows_names("Keys", "Synth", Strength.VERY_VAGUE)


def test_stronger_allow_overrides_vaguer_disallow() -> None:
    rules = RuleSet()
    rules.add_rule(RuleKind.ALLOW, "Keys", "Synth")
    rules.add_rule(RuleKind.DISALLOW, "*", "*")
    assert rules.allows_names("Keys", "Synth", Strength.SPECIFIC)
    assert not rules.allows_names("Keys", "Drums", Strength.VERY_VAGUE)


def test_embedded_wildcard_is_rejected() -> None:
    rules = RuleSet()
    assert rules.add_rule(RuleKind.ALLOW, "Foo*Bar", "*") is False
    assert not rules.has_rules()


def test_empty_pattern_is_rejected() -> None:
    rules = RuleSet()
    assert rules.add_rule(RuleKind.DISALLOW, "Keys", "") is False
    assert not rules.has_rules()


def test_duplicate_rules_are_harmless() -> None:
    rules = RuleSet()
    assert rules.add_rule(RuleKind.ALLOW, "Keys", "Synth")
    assert rules.add_rule(RuleKind.ALLOW, "Keys", "Synth")
    assert len(rules.allow) == 2
    assert rules.allows_names("Keys", "Synth", Strength.SPECIFIC)


def test_is_allowed_resolves_names() -> None:
    rules = RuleSet()
    rules.add_rule(RuleKind.ALLOW, "Keys", "Synth")
    resolve = _names({20: "Keys", 128: "Synth"})
    assert rules.is_allowed(Address(20, 0), Address(128, 0), Strength.SPECIFIC, resolve)
    assert not rules.is_allowed(Address(128, 0), Address(20, 0), Strength.SPECIFIC, resolve)


def test_unresolvable_name_only_matches_wildcards() -> None:
    rules = RuleSet()
    rules.add_rule(RuleKind.ALLOW, "Keys", "*")
    resolve = _names({128: "Synth"})
    assert not rules.is_allowed(Address(20, 0), Address(128, 0), Strength.VERY_VAGUE, resolve)

    rules.add_rule(RuleKind.ALLOW, "*", "*")
    assert rules.is_allowed(Address(20, 0), Address(128, 0), Strength.VERY_VAGUE, resolve)
