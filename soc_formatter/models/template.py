"""
Template models — saved output formats and label → JSON path mappings.

Templates and mappings are stored outside the engine (records written by
the template learner or by hand). Records written by the analysts' web console
use camelCase keys; both spellings are accepted on input.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


def ensure_unique_labels(mappings: list[FieldMapping]) -> list[FieldMapping]:
    seen: set[str] = set()
    for mapping in mappings:
        if mapping.label in seen:
            raise ValueError(f"duplicate field mapping label '{mapping.label}'")
        seen.add(mapping.label)
    return mappings


class FieldMapping(BaseModel):
    """A business label ("Source IP") bound to a dotted JSON path ("srcip")."""

    label: str
    path: str = ""
    sample_value: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("sample_value", "sampleValue"),
    )


class MappingSource(BaseModel):
    """One named layer of label → path mappings.

    The formatter receives an ordered list of sources; a label defined by an
    earlier source shadows the same label in every later one.
    """

    name: str
    mappings: list[FieldMapping] = Field(default_factory=list)

    @field_validator("mappings")
    @classmethod
    def _unique_labels(cls, value: list[FieldMapping]) -> list[FieldMapping]:
        return ensure_unique_labels(value)


class AlertFormatTemplate(BaseModel):
    alert_identifier: str = Field(
        default="",
        validation_alias=AliasChoices("alert_identifier", "alertIdentifier"),
    )
    alert_name: str = Field(default="", validation_alias=AliasChoices("alert_name", "alertName"))
    event_name: str = Field(default="", validation_alias=AliasChoices("event_name", "eventName"))
    expected_format: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("expected_format", "expectedFormat"),
    )
    field_mappings: list[FieldMapping] = Field(
        default_factory=list,
        validation_alias=AliasChoices("field_mappings", "fieldMappings"),
    )

    @field_validator("expected_format", mode="before")
    @classmethod
    def _split_text(cls, value: object) -> object:
        # Stored records keep the expected output as one block of text.
        if isinstance(value, str):
            return value.strip().splitlines() if value.strip() else []
        return value

    @field_validator("field_mappings")
    @classmethod
    def _unique_labels(cls, value: list[FieldMapping]) -> list[FieldMapping]:
        return ensure_unique_labels(value)

    @model_validator(mode="after")
    def _default_identifier(self) -> AlertFormatTemplate:
        if not self.alert_identifier:
            self.alert_identifier = (self.alert_name or self.event_name).strip().lower()
        return self


class TemplateMatch(BaseModel):
    template: AlertFormatTemplate
    score: float = 1.0   # 1.0 for exact matches
    exact: bool = True
