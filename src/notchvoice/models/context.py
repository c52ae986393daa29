"""Activation context passed in by an external trigger."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from pydantic import AnyUrl, BaseModel, Field, TypeAdapter, ValidationError, field_validator

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)

# query key -> model field
_ALIASES: dict[str, str] = {
    "session": "session_id",
    "session_id": "session_id",
    "url": "url",
    "link": "url",
    "text": "text",
    "content": "text",
    "file": "file_path",
    "path": "file_path",
}


class ActivationContext(BaseModel):
    """Hints supplied when a session is started from outside the app.

    Built from the flat key/value parameters of an activation request
    (``notchvoice://activate?session=abc&file=/tmp/x.py``). The context is
    rendered into a system prompt and sent to the remote agent once the
    room is connected.
    """

    model_config = {"frozen": True}

    session_id: str | None = None
    url: str | None = None
    text: str | None = None
    file_path: str | None = None
    raw_params: dict[str, str] = Field(default_factory=dict)

    @field_validator("url", mode="before")
    @classmethod
    def _drop_invalid_url(cls, v: Any) -> Any:
        """Invalid URL strings are treated as absent rather than rejected.

        A valid URL is kept exactly as given so the agent sees the
        caller's text, not a normalized form.
        """
        if v is None:
            return None
        if isinstance(v, AnyUrl):
            return str(v)
        try:
            _URL_ADAPTER.validate_python(v)
        except ValidationError:
            return None
        return v

    @property
    def is_empty(self) -> bool:
        return (
            self.session_id is None
            and self.url is None
            and self.text is None
            and self.file_path is None
        )

    @classmethod
    def from_params(
        cls, params: Mapping[str, str] | Iterable[tuple[str, str]]
    ) -> ActivationContext:
        """Build a context from query-style key/value pairs.

        Empty values are skipped. Unknown keys only land in
        :attr:`raw_params`. When a key repeats, the last value wins.
        """
        items = params.items() if isinstance(params, Mapping) else params
        raw: dict[str, str] = {}
        fields: dict[str, str] = {}
        for key, value in items:
            if not value:
                continue
            raw[key] = value
            field_name = _ALIASES.get(key)
            if field_name is not None:
                fields[field_name] = value
        return cls(raw_params=raw, **fields)

    @classmethod
    def from_url(cls, url: str) -> ActivationContext:
        """Build a context from the query string of an activation URL."""
        try:
            query = urlsplit(url).query
        except ValueError:
            return cls()
        return cls.from_params(parse_qsl(query, keep_blank_values=True))

    def to_system_prompt(self) -> str | None:
        """Render the context as a system message for the agent.

        Returns ``None`` when there is nothing to say.
        """
        parts: list[str] = []
        if self.session_id is not None:
            parts.append(f"Continue session: {self.session_id}")
        if self.url is not None:
            parts.append(f"Discuss this URL: {self.url}")
        if self.text is not None:
            parts.append(f"Context: {self.text}")
        if self.file_path is not None:
            parts.append(f"Discuss file: {self.file_path}")
        return "\n".join(parts) if parts else None
