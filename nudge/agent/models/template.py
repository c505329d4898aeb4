"""Message template models."""

import re
from typing import Any

from pydantic import BaseModel, Field, model_validator

from nudge.agent.models.base import StorageModel
from nudge.agent.models.enums import AgentType, Channel

# Flat per-locale storage columns such as `titleEn` / `bodyTr`
_LOCALE_COLUMN = re.compile(r"^(title|body)([A-Z][a-z]{1,2})$")


class LocalizedContent(StorageModel):
    """Title and body for one locale, with `{{path}}` placeholders."""

    title: str
    body: str


class Template(StorageModel):
    """A localized notification template.

    `variables` is the closed set of placeholders the template may
    reference. Templates are never mutated by rendering.
    """

    id: str = Field(..., description="Template identifier")
    name: str = Field(default="", description="Human-readable name")
    agent_type: AgentType = Field(..., description="Behavioural category")
    channel: Channel = Field(..., description="Channel the copy is written for")
    content: dict[str, LocalizedContent] = Field(
        default_factory=dict,
        description="Locale code to title/body",
    )
    action_url: str | None = Field(default=None, description="Deep link opened on tap")
    variables: list[str] = Field(
        default_factory=list,
        description="Declared placeholder paths",
    )
    is_active: bool = Field(default=True, description="Whether the template can be used")

    @model_validator(mode="before")
    @classmethod
    def fold_locale_columns(cls, data: Any) -> Any:
        """Fold flat `titleEn`/`bodyEn` columns into `content`."""
        if not isinstance(data, dict):
            return data

        folded: dict[str, dict[str, str]] = {}
        remaining: dict[str, Any] = {}
        for key, value in data.items():
            match = _LOCALE_COLUMN.match(key)
            if match:
                field, locale = match.groups()
                folded.setdefault(locale.lower(), {})[field] = value
            else:
                remaining[key] = value

        if not folded:
            return data

        content = dict(remaining.get("content") or {})
        for locale, parts in folded.items():
            content.setdefault(locale, parts)
        remaining["content"] = content
        return remaining


class RenderedContent(BaseModel):
    """Fully substituted message ready for a channel."""

    title: str
    body: str
    action_url: str | None = None
    locale: str
