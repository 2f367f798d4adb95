"""Durable, DOM-independent position descriptor."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PositionDescriptor(BaseModel):
    """Content fingerprint used to relocate a text span without raw offsets.

    Wire names are camelCase (``selectedText``, ``beforeText``,
    ``afterText``, ``sourceURL``); older records that used ``url`` for the
    address are still accepted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    selected_text: str = Field(alias="selectedText", min_length=1)
    before_text: str = Field(default="", alias="beforeText")
    after_text: str = Field(default="", alias="afterText")
    source_url: str = Field(
        default="",
        alias="sourceURL",
        validation_alias=AliasChoices("sourceURL", "url", "source_url"),
    )

    @property
    def pattern(self) -> str:
        """Search pattern: context before + selection + context after."""
        return self.before_text + self.selected_text + self.after_text
