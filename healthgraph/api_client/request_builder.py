"""Turn call options into request descriptors."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from email.utils import format_datetime
from typing import Any, Mapping
from urllib.parse import urlencode

from ..errors import ValidationError
from ..models import CallOptions, RequestDescriptor
from .resources import RESOURCES

__all__ = [
    "resolve_resource",
    "build_query",
    "format_http_date",
    "build_request",
]


def resolve_resource(options: CallOptions) -> CallOptions:
    """Fill ``media_type``/``uri`` from the named resource where unset.

    Explicit fields on ``options`` take precedence over the resource table.
    """

    if options.resource is not None:
        resource = RESOURCES.get(options.resource)
        if resource is None:
            raise ValidationError(f"Unknown resource: {options.resource}")
        if not options.media_type:
            options.media_type = resource.media_type
        if not options.uri:
            options.uri = resource.uri
    if not options.media_type or not options.uri:
        raise ValidationError("Either resource or both media_type and uri are required")
    return options


def build_query(params: Mapping[str, Any] | str | None) -> str:
    if params is None or params == "":
        return ""
    if isinstance(params, str):
        return params if params.startswith("?") else "?" + params
    if isinstance(params, Mapping):
        encoded = urlencode(params, doseq=True)
        return "?" + encoded if encoded else ""
    raise ValidationError(
        f"params must be a mapping or a string, got {type(params).__name__}"
    )


def format_http_date(value: Any) -> str:
    """Render a date or datetime as an RFC 7231 HTTP-date (naive means UTC)."""

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    else:
        raise ValidationError(
            f"modified_since has to be a date or datetime, got {type(value).__name__}"
        )
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def build_request(
    options: CallOptions,
    api_domain: str,
    access_token: str | None,
    default_timeout: float | None = None,
) -> RequestDescriptor:
    resolve_resource(options)
    headers = {
        "Accept": str(options.media_type),
        "Authorization": f"Bearer {access_token or ''}",
    }
    if options.modified_since is not None:
        headers["If-Modified-Since"] = format_http_date(options.modified_since)
    return RequestDescriptor(
        method=(options.method or "GET").upper(),
        uri=f"{api_domain}{options.uri}{build_query(options.params)}",
        headers=headers,
        timeout=options.timeout if options.timeout else default_timeout,
    )
