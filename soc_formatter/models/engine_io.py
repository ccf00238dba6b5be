"""
Engine I/O contracts — typed inputs and outputs for every engine entry point.

The API hands work to the engine using these types. Everything the engine
needs (templates, global mappings, whitelist rules) travels inside the
input; the engine never fetches anything itself.

Import hierarchy (no circular dependencies):
  alert.py          <- no internal imports
  template.py       <- no internal imports
  whitelist.py      <- no internal imports
  report.py         <- no internal imports
  engine_io.py      <- template.py, whitelist.py, report.py
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from soc_formatter.models.report import FormatResult
from soc_formatter.models.template import AlertFormatTemplate, FieldMapping, ensure_unique_labels
from soc_formatter.models.whitelist import SheetWhitelistEntry, WhitelistRule


# ---------------------------------------------------------------------------
# Report formatting — alert payload → rendered text
# ---------------------------------------------------------------------------

class FormatInput(BaseModel):
    payload: Optional[dict[str, Any]] = None
    raw_json: Optional[str] = None          # parsed when payload is absent
    templates: list[AlertFormatTemplate] = Field(default_factory=list)
    global_mappings: list[FieldMapping] = Field(default_factory=list)

    @field_validator("global_mappings")
    @classmethod
    def _unique_labels(cls, value: list[FieldMapping]) -> list[FieldMapping]:
        return ensure_unique_labels(value)


class FormatOutput(BaseModel):
    result: FormatResult


# ---------------------------------------------------------------------------
# Whitelist parsing — analyst free text → WhitelistRule
# ---------------------------------------------------------------------------

class ParseWhitelistInput(BaseModel):
    text: str


# ---------------------------------------------------------------------------
# Whitelist check — alert payload + stored rules → decision
# ---------------------------------------------------------------------------

class WhitelistCheckInput(BaseModel):
    alert_data: dict[str, Any]
    rules: list[WhitelistRule] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Sheet import — whitelist spreadsheet CSV → entries + rules
# ---------------------------------------------------------------------------

class ImportSheetInput(BaseModel):
    csv_text: str


class ImportSheetOutput(BaseModel):
    entries: list[SheetWhitelistEntry] = Field(default_factory=list)
    rules: list[WhitelistRule] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Template learning — sample payload + desired output → template
# ---------------------------------------------------------------------------

class LearnTemplateInput(BaseModel):
    sample_payload: dict[str, Any]
    expected_format: str
