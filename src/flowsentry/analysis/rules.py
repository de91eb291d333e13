"""Pairwise conflict detection among automation rules."""

from __future__ import annotations

import logging
from typing import Any

from flowsentry.defaults import CURRENT_VALUE_SENTINEL
from flowsentry.errors import UnsupportedRuleType
from flowsentry.models import AutomationRule, ConflictKind, RuleConflict, RuleConflictReport

log = logging.getLogger("flowsentry.analysis.rules")


def _coerce_rules(rules: Any) -> list[AutomationRule]:
    if not isinstance(rules, (list, tuple)):
        raise UnsupportedRuleType(f"Rules must be a list, got {type(rules).__name__}")
    return [AutomationRule.from_dict(r) for r in rules]


def analyze_rules(rules: Any) -> RuleConflictReport:
    """Compare every pair of rules that share a trigger.

    For each pair of actions writing the same field, differing values give an
    OVERWRITE conflict and a ``"CURRENT"`` value on either side gives a LOOP
    conflict.  Both can be reported for the same pair and field.
    """
    parsed = _coerce_rules(rules)
    conflicts: list[RuleConflict] = []

    for i, rule_a in enumerate(parsed):
        for rule_b in parsed[i + 1:]:
            if rule_a.trigger != rule_b.trigger:
                continue
            for action_a in rule_a.actions:
                for action_b in rule_b.actions:
                    if action_a.field != action_b.field:
                        continue
                    if action_a.value != action_b.value:
                        conflicts.append(RuleConflict(
                            rule_a=rule_a.id, rule_b=rule_b.id, trigger=rule_a.trigger,
                            field=action_a.field, kind=ConflictKind.OVERWRITE,
                        ))
                    if CURRENT_VALUE_SENTINEL in (action_a.value, action_b.value):
                        conflicts.append(RuleConflict(
                            rule_a=rule_a.id, rule_b=rule_b.id, trigger=rule_a.trigger,
                            field=action_a.field, kind=ConflictKind.LOOP,
                        ))

    log.debug("Analyzed %d rules: %d conflicts", len(parsed), len(conflicts))
    return RuleConflictReport(conflicts=conflicts)
