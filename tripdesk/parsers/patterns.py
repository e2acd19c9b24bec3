# parsers/patterns.py
"""
Pattern Tables
Ordered rule groups mapping trigger phrases to effects.

A RuleGroup holds its triggers in evaluation order plus a match policy:
- FIRST: the first trigger that matches fires, the rest are skipped
- LAST:  only the last trigger that matches fires
- ALL:   every matching trigger fires in order (later keys overwrite earlier)

Groups are independent of each other, so one sentence can fire several groups.
A trigger "fires" when its test matches, even if its effect yields nothing.
"""

import re
from dataclasses import dataclass
from enum import Enum
from re import Match
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from loguru import logger


Test = Callable[[str], Optional[Match]]
Effect = Callable[[Match, Any], Dict[str, Any]]


class MatchPolicy(str, Enum):
    FIRST = "first"
    LAST = "last"
    ALL = "all"


# ============================================
# Trigger tests
# ============================================

def regex(pattern: str) -> Test:
    """Case-insensitive regular expression test"""
    return re.compile(pattern, re.IGNORECASE).search


def phrase(*phrases: str) -> Test:
    """Plain substring test over any of the phrases"""
    return regex("|".join(re.escape(p) for p in phrases))


def keyword(*words: str) -> Test:
    """Whole-word test over any of the words"""
    return regex(r"\b(?:%s)\b" % "|".join(re.escape(w) for w in words))


def all_of(*tests: Test) -> Test:
    """Matches only when every test matches; yields the first test's match"""
    def test(text: str) -> Optional[Match]:
        first = None
        for t in tests:
            match = t(text)
            if match is None:
                return None
            if first is None:
                first = match
        return first
    return test


def const(values: Dict[str, Any]) -> Effect:
    """Effect assigning fixed values"""
    return lambda match, context: dict(values)


# ============================================
# Rules
# ============================================

@dataclass(frozen=True)
class Trigger:
    name: str
    test: Test
    effect: Effect


@dataclass(frozen=True)
class RuleGroup:
    name: str
    policy: MatchPolicy
    triggers: Tuple[Trigger, ...]
    # None means the group applies to every scope
    scopes: Optional[FrozenSet[Any]] = None

    def applies_to(self, scope: Any) -> bool:
        return self.scopes is None or scope in self.scopes

    def evaluate(self, text: str, context: Any = None) -> Dict[str, Any]:
        """Run this group's triggers against text and merge the effects"""
        hits = []
        for trigger in self.triggers:
            match = trigger.test(text)
            if match is None:
                continue
            hits.append((trigger, match))
            if self.policy is MatchPolicy.FIRST:
                break

        if self.policy is MatchPolicy.LAST:
            hits = hits[-1:]

        result: Dict[str, Any] = {}
        for trigger, match in hits:
            result.update(trigger.effect(match, context))

        if hits:
            logger.debug(f"Rule group '{self.name}' fired {[t.name for t, _ in hits]} -> {result}")
        return result


def evaluate_groups(
    groups: Iterable[RuleGroup],
    text: str,
    scope: Any = None,
    context: Any = None
) -> Dict[str, Any]:
    """Evaluate every applicable group in table order and merge the results"""
    result: Dict[str, Any] = {}
    for group in groups:
        if group.applies_to(scope):
            result.update(group.evaluate(text, context))
    return result
