"""
Report models — output of the template formatter.

ReportSection is one block of the rendered text: an optional label line
followed by a value line. Header sections (alert name, date, description)
carry no label.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from soc_formatter.models.alert import AlertCategory


class ReportStrategy(str, Enum):
    FIELD_MAPPINGS = "field_mappings"
    TEXT_TEMPLATE = "text_template"
    ESET = "eset"
    GENERIC = "generic"


class ReportSection(BaseModel):
    label: Optional[str] = None
    value: str = ""


class FormatResult(BaseModel):
    text: str
    strategy: ReportStrategy
    category: AlertCategory = AlertCategory.GENERIC
    template_identifier: Optional[str] = None
    match_score: Optional[float] = None   # None when no template was selected
    sections: list[ReportSection] = Field(default_factory=list)
