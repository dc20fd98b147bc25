"""
Request and response shapes exchanged with the edge host.

CloudFront hands a viewer request to the function as a record whose headers
are a multimap: lower-cased name to a list of ``{"key", "value"}`` entries.
Only the first entry of a header is authoritative here.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .cookies import parse_cookie_header


@dataclass(frozen=True)
class EdgeRequest:
    """A viewer request as seen by the gate."""

    method: str
    uri: str
    querystring: str = ""
    headers: Dict[str, List[str]] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_cloudfront(cls, record: Dict[str, Any]) -> "EdgeRequest":
        headers: Dict[str, List[str]] = {}
        for name, entries in (record.get("headers") or {}).items():
            values = [entry.get("value", "") for entry in entries or [] if isinstance(entry, dict)]
            headers[name.lower()] = values

        return cls(
            method=record.get("method", "GET"),
            uri=record.get("uri") or "/",
            querystring=record.get("querystring") or "",
            headers=headers,
            raw=record,
        )

    @classmethod
    def build(cls, method: str, uri: str, querystring: str = "", headers: Optional[Dict[str, Any]] = None) -> "EdgeRequest":
        """Build a request from plain header values (str or list of str)."""
        normalized: Dict[str, List[str]] = {}
        for name, value in (headers or {}).items():
            values = list(value) if isinstance(value, (list, tuple)) else [value]
            normalized.setdefault(name.lower(), []).extend(values)
        return cls(method=method, uri=uri, querystring=querystring, headers=normalized)

    def header(self, name: str) -> Optional[str]:
        """First value of ``name``, or None when absent."""
        values = self.headers.get(name.lower())
        if not values:
            return None
        return values[0]

    @property
    def host(self) -> str:
        return (self.header("host") or "").lower()

    @property
    def cookie(self) -> Optional[str]:
        return self.header("cookie")

    def cookies(self) -> Dict[str, str]:
        return parse_cookie_header(self.cookie)

    @property
    def path_with_query(self) -> str:
        if self.querystring:
            return f"{self.uri}?{self.querystring}"
        return self.uri

    def to_cloudfront(self, uri: Optional[str] = None) -> Dict[str, Any]:
        """Render as a CloudFront request record, optionally with a new URI."""
        if self.raw is not None:
            record = copy.deepcopy(self.raw)
        else:
            record = {
                "method": self.method,
                "querystring": self.querystring,
                "headers": {
                    name: [{"key": name.title(), "value": value} for value in values]
                    for name, values in self.headers.items()
                },
            }
        record["uri"] = uri if uri is not None else self.uri
        return record


@dataclass(frozen=True)
class ForwardToOrigin:
    """Pass the request on to the content origin at ``uri``."""

    request: EdgeRequest
    uri: str

    def to_cloudfront(self) -> Dict[str, Any]:
        return self.request.to_cloudfront(uri=self.uri)


@dataclass(frozen=True)
class Redirect:
    """A 302 response, optionally setting cookies."""

    location: str
    set_cookies: List[str] = field(default_factory=list)
    status: int = 302

    def to_cloudfront(self) -> Dict[str, Any]:
        headers: Dict[str, List[Dict[str, str]]] = {
            "location": [{"key": "Location", "value": self.location}],
            "cache-control": [{"key": "Cache-Control", "value": "no-store"}],
        }
        if self.set_cookies:
            headers["set-cookie"] = [{"key": "Set-Cookie", "value": cookie} for cookie in self.set_cookies]
        return {
            "status": str(self.status),
            "statusDescription": "Found",
            "headers": headers,
        }


@dataclass(frozen=True)
class ErrorPage:
    """A synthesized HTML response."""

    status: int
    description: str
    body: str

    def to_cloudfront(self) -> Dict[str, Any]:
        return {
            "status": str(self.status),
            "statusDescription": self.description,
            "headers": {
                "content-type": [{"key": "Content-Type", "value": "text/html; charset=utf-8"}],
                "cache-control": [{"key": "Cache-Control", "value": "no-store"}],
            },
            "body": self.body,
        }
