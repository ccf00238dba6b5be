"""
Whitelist matching — alert + stored rules → WhitelistDecision.

Each rule is an AND-chain of constraints; an unset rule field is a
wildcard. Rules are tried in the order the caller's store returned them
and the first rule that satisfies every active constraint wins.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from soc_formatter.engine.extract import alert_name_of
from soc_formatter.engine.paths import resolve_path, to_text
from soc_formatter.models.whitelist import WhitelistDecision, WhitelistMatchContext, WhitelistRule

logger = logging.getLogger(__name__)


def _first_text(payload: Mapping[str, Any], *paths: str) -> str:
    for path in paths:
        value = to_text(resolve_path(payload, path)).strip()
        if value:
            return value
    return ""


def build_match_context(payload: Mapping[str, Any]) -> WhitelistMatchContext:
    """The alert attributes a whitelist rule is compared against."""
    ip = _first_text(payload, "hostip", "srcip")
    return WhitelistMatchContext(
        alert_name=alert_name_of(payload),
        description=_first_text(payload, "xdr_event.description", "description"),
        host_name=_first_text(payload, "host.name", "hostname"),
        process_path=_first_text(payload, "process.executable", "process.name", "process_path"),
        ip=ip or None,
    )


def _overlaps(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive containment either way; empty strings never overlap."""
    a = (a or "").lower()
    b = (b or "").lower()
    if not a or not b:
        return False
    return a in b or b in a


def _signature_ok(rule: WhitelistRule, ctx: WhitelistMatchContext) -> bool:
    if rule.applies_to_all_alerts or not rule.alert_signature:
        return True
    return _overlaps(ctx.alert_name, rule.alert_signature)


def _device_ok(rule: WhitelistRule, ctx: WhitelistMatchContext) -> bool:
    if not rule.device_name:
        return True
    return _overlaps(ctx.host_name, rule.device_name)


def _process_ok(rule: WhitelistRule, ctx: WhitelistMatchContext) -> bool:
    if not rule.process_name:
        return True
    return _overlaps(ctx.process_path, rule.process_name)


def _ip_ok(rule: WhitelistRule, ctx: WhitelistMatchContext) -> bool:
    if not rule.ip_address:
        return True
    return _overlaps(ctx.ip, rule.ip_address)


def _tokens_ok(rule: WhitelistRule, ctx: WhitelistMatchContext) -> bool:
    if rule.applies_to_all_alerts or not rule.match_tokens:
        return True
    haystack = (ctx.alert_name + ctx.description + ctx.process_path + ctx.host_name).lower()
    return any(token and token.lower() in haystack for token in rule.match_tokens)


_CONSTRAINTS = (
    ("signature", _signature_ok),
    ("device", _device_ok),
    ("process", _process_ok),
    ("ip", _ip_ok),
    ("tokens", _tokens_ok),
)


def rule_matches(rule: WhitelistRule, ctx: WhitelistMatchContext) -> bool:
    for name, check in _CONSTRAINTS:
        if not check(rule, ctx):
            logger.debug("whitelist_match.rejected", extra={"constraint": name})
            return False
    return True


def match_whitelist(ctx: WhitelistMatchContext, rules: Sequence[WhitelistRule]) -> WhitelistDecision:
    """Return the decision of the first rule passing every constraint."""
    for rule in rules:
        if rule_matches(rule, ctx):
            return WhitelistDecision(matched=True, reason=rule.reason, rule=rule)
    return WhitelistDecision(matched=False)


def check_alert(payload: Mapping[str, Any], rules: Sequence[WhitelistRule]) -> WhitelistDecision:
    """Build the match context for a raw payload and run the matcher."""
    ctx = build_match_context(payload)
    decision = match_whitelist(ctx, rules)
    if decision.matched:
        logger.info(
            "whitelist_match.matched",
            extra={"alert_name": ctx.alert_name, "signature": decision.rule.alert_signature},
        )
    else:
        logger.info(
            "whitelist_match.no_match",
            extra={"alert_name": ctx.alert_name, "rules": len(rules)},
        )
    return decision
