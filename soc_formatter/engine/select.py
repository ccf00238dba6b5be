"""
Template selection — pick the saved format that fits an incoming alert.

Two passes over the templates, in store order:
  1. exact   first template whose identifier, event name or alert name
             (lower-cased) equals the alert's, checked in that priority
  2. fuzzy   containment-overlap score min(len)/max(len) per dimension,
             best score per template; keep the strictly highest score when
             it exceeds the configured threshold

No match is not an error: the formatter falls through to its defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from soc_formatter.config import get_settings
from soc_formatter.models.template import AlertFormatTemplate, TemplateMatch

logger = logging.getLogger(__name__)


def overlap_score(current: str, saved: str) -> float:
    """min(len)/max(len) when one string contains the other, else 0."""
    if not current or not saved:
        return 0.0
    if current in saved or saved in current:
        return min(len(current), len(saved)) / max(len(current), len(saved))
    return 0.0


def _exact_match(
    template: AlertFormatTemplate, identifier: str, event_name: str, alert_name: str
) -> bool:
    if identifier and template.alert_identifier.lower() == identifier:
        return True
    if event_name and template.event_name.lower() == event_name:
        return True
    return bool(alert_name) and template.alert_name.lower() == alert_name


def select_template(
    alert_name: str,
    event_name: str,
    templates: Sequence[AlertFormatTemplate],
    *,
    threshold: Optional[float] = None,
) -> Optional[TemplateMatch]:
    """Return the best template for an alert, or None.

    Args:
        alert_name: Display name of the alert ("" when the payload has none).
        event_name: Event name of the alert ("" when the payload has none).
        templates: Stored templates in store order.
        threshold: Fuzzy score that must be strictly exceeded; defaults to
            Settings.template_match_threshold.
    """
    if threshold is None:
        threshold = get_settings().template_match_threshold

    alert_name = (alert_name or "").lower()
    event_name = (event_name or "").lower()
    identifier = alert_name or event_name

    for template in templates:
        if _exact_match(template, identifier, event_name, alert_name):
            logger.debug(
                "template_select.exact_match",
                extra={"template": template.alert_identifier},
            )
            return TemplateMatch(template=template)

    best: Optional[AlertFormatTemplate] = None
    best_score = 0.0
    for template in templates:
        score = max(
            overlap_score(identifier, template.alert_identifier.lower()),
            overlap_score(alert_name, template.alert_name.lower()),
            overlap_score(event_name, template.event_name.lower()),
        )
        if score > best_score and score > threshold:
            best, best_score = template, score

    if best is None:
        logger.debug("template_select.no_match", extra={"templates": len(templates)})
        return None

    logger.debug(
        "template_select.fuzzy_match",
        extra={"template": best.alert_identifier, "score": round(best_score, 3)},
    )
    return TemplateMatch(template=best, score=best_score, exact=False)
