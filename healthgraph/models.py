from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional

from .errors import ValidationError

# Camel-case option names accepted for compatibility with existing callers.
_OPTION_ALIASES = {"backOffLimit": "backoff_limit", "getNext": "get_next"}


@dataclass(frozen=True)
class Resource:
    media_type: str
    uri: str


@dataclass(frozen=True)
class ClientConfig:
    client_id: str | None = None
    client_secret: str | None = None
    auth_url: str | None = None
    access_token_url: str | None = None
    redirect_uri: str | None = None
    api_domain: str | None = None


@dataclass
class CallOptions:
    """Per-call settings, also carrying pagination state between page fetches."""

    resource: str | None = None
    media_type: str | None = None
    uri: str | None = None
    method: str = "GET"
    # Mapping is url-encoded; a string is used verbatim as the query string
    params: Mapping[str, Any] | str | None = None
    access_token: str | None = None
    modified_since: Any = None
    timeout: float | None = None
    backoff_limit: int | None = None
    get_next: bool = False
    items: Optional[List[Any]] = None
    max_pages: int | None = None

    @classmethod
    def coerce(cls, value: "CallOptions | Mapping[str, Any] | None") -> "CallOptions":
        """Return a fresh ``CallOptions`` built from ``value``.

        ``value`` may be ``None``, an existing instance (copied, so callers'
        objects are never mutated) or a mapping of option names.
        """

        if value is None:
            return cls()
        if isinstance(value, CallOptions):
            items = list(value.items) if value.items is not None else None
            return replace(value, items=items)
        if not isinstance(value, Mapping):
            raise ValidationError(
                f"options must be a mapping or CallOptions, got {type(value).__name__}"
            )
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, item in value.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown call option: {key}")
            kwargs[name] = item
        if kwargs.get("items") is not None:
            kwargs["items"] = list(kwargs["items"])
        return cls(**kwargs)


@dataclass
class RequestDescriptor:
    method: str
    uri: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str | None = None
    timeout: float | None = None


@dataclass
class TransportResponse:
    status_code: int
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
