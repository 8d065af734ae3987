"""
Localizable message handles.

Message formatting lives outside this service; titles, descriptions and
explanations arrive either as plain strings or as opaque IcuMessage handles
and are passed through untouched.
"""

from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field


class IcuMessage(BaseModel):
    """An unformatted message: an id into a message catalog plus its arguments."""

    model_config = ConfigDict(frozen=True)

    i18n_id: str
    values: Dict[str, Any] = Field(default_factory=dict)
    formatted_default: str


LocalizableText = Union[str, IcuMessage]


def text_of(value: LocalizableText) -> str:
    """Best-effort plain text for log lines. Never used for report output."""
    if isinstance(value, IcuMessage):
        return value.formatted_default
    return value
