"""
Whitelist sheet import — analysts' spreadsheet (CSV export) → rules.

The sheet is grouped by status: a row such as "Resolved - False Positive"
with nothing else filled in is a section heading, and every entry below it
inherits that status until the next heading. An entry's own text can still
override the inherited status.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable

from soc_formatter.engine.whitelist_parser import parse_whitelist_text
from soc_formatter.models.whitelist import SheetWhitelistEntry, WhitelistRule

logger = logging.getLogger(__name__)

# Column C holds the value / detail whatever its header says.
VALUE_COLUMN = 2


def case_status_of(text: str) -> str:
    t = (text or "").lower()
    if "resolved" in t:
        return "Resolved"
    if "confirmed" in t:
        return "Confirmed"
    if "whitelist" in t:
        return "Whitelisted"
    return ""


def verification_status_of(text: str) -> str:
    t = (text or "").lower()
    if "true positive" in t:
        return "True Positive"
    if "false positive" in t:
        return "False Positive"
    if "to be confirmed" in t:
        return "To Be Confirmed"
    return ""


def remediation_status_of(text: str) -> str:
    t = (text or "").lower()
    if "not remediated" in t:
        return "Not Remediated"
    if "remediated" in t:
        return "Remediated"
    return ""


def _cell(row: list[str], col: int) -> str:
    if col < 0 or col >= len(row):
        return ""
    return (row[col] or "").strip()


def parse_sheet(csv_text: str) -> list[SheetWhitelistEntry]:
    """Entries of a whitelist sheet, status headings folded into the rows below."""
    rows = [
        row for row in csv.reader(io.StringIO(csv_text or ""))
        if any(cell.strip() for cell in row)
    ]
    if not rows:
        return []

    header = [h.strip().lower() for h in rows[0]]

    def column(name: str) -> int:
        return header.index(name) if name in header else -1

    col_alert = column("alert name")
    col_action = column("action")
    col_confirmation = column("confirmation")

    case_status = verification = remediation = ""
    entries: list[SheetWhitelistEntry] = []

    for row in rows[1:]:
        alert_name = _cell(row, col_alert)
        action = _cell(row, col_action)
        value = _cell(row, VALUE_COLUMN)
        confirmation = _cell(row, col_confirmation)

        heading_case = case_status_of(alert_name)
        heading_verification = verification_status_of(alert_name)
        heading_remediation = remediation_status_of(alert_name)
        if (heading_case or heading_verification or heading_remediation) and not (
            action or value or confirmation
        ):
            case_status = heading_case or case_status
            verification = heading_verification or verification
            remediation = heading_remediation or remediation
            continue

        if not (alert_name or action or value or confirmation):
            continue

        status_text = f"{alert_name} {confirmation}"
        entries.append(
            SheetWhitelistEntry(
                alert_name=alert_name,
                action=action,
                value=value,
                confirmation=confirmation,
                case_status=case_status_of(status_text) or case_status,
                verification=verification_status_of(status_text) or verification,
                remediation=remediation_status_of(status_text) or remediation,
            )
        )

    logger.info("sheet_import.parsed", extra={"rows": len(rows) - 1, "entries": len(entries)})
    return entries


def entries_to_rules(entries: Iterable[SheetWhitelistEntry]) -> list[WhitelistRule]:
    """Run every entry's note through the whitelist-text parser."""
    return [parse_whitelist_text(entry.note) for entry in entries if entry.note]
