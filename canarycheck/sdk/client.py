"""HTTP plumbing shared by the topology API services."""

from __future__ import annotations

import base64
import io
import json
import re
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass, is_dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from canarycheck.sdk.models import to_dict

_JSON_CHECK = re.compile(r"[application|text]/json", re.IGNORECASE)
_XML_CHECK = re.compile(r"[application|text]/xml", re.IGNORECASE)
_SECONDS = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)")
_RFC1123 = "%a, %d %b %Y %H:%M:%S %Z"

_DELIMITERS = {"pipes": "|", "ssv": " ", "tsv": "\t", "csv": ","}

_TEXT_PLAIN = "text/plain; charset=utf-8"
_JSON_TYPE = "application/json; charset=utf-8"

_SIGNATURES = (
    (b"%PDF-", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
)
_HTML_PREFIXES = (
    b"<!doctype html", b"<html", b"<head", b"<script", b"<iframe", b"<h1", b"<div",
    b"<font", b"<table", b"<a", b"<style", b"<title", b"<b", b"<body", b"<br", b"<p",
    b"<!--",
)
_BINARY_BYTES = frozenset([*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)])

TokenSource = Callable[[], str]


class GenericSwaggerError(Exception):
    """An API call failed; carries the raw body and any decoded model."""

    def __init__(self, error: str, body: bytes = b"", model: Any = None) -> None:
        super().__init__(error)
        self.error = error
        self.body = body
        self.model = model

    def __str__(self) -> str:
        return self.error


@dataclass(frozen=True)
class BasicAuth:
    """Credentials for HTTP basic authentication."""

    user_name: str = ""
    password: str = ""


def _contains(haystack: Iterable[str], needle: str) -> bool:
    needle = needle.lower()
    return any(item.lower() == needle for item in haystack)


def select_header_content_type(content_types: list[str]) -> str:
    """Prefer JSON, otherwise the first content type offered."""
    if not content_types:
        return ""
    if _contains(content_types, "application/json"):
        return "application/json"
    return content_types[0]


def select_header_accept(accepts: list[str]) -> str:
    """Prefer JSON, otherwise all accepted types joined by commas."""
    if not accepts:
        return ""
    if _contains(accepts, "application/json"):
        return "application/json"
    return ",".join(accepts)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    return str(value)


def parameter_to_string(obj: Any, collection_format: str = "") -> str:
    """Render a parameter; sequences are joined with the collection delimiter."""
    if isinstance(obj, (list, tuple)):
        delimiter = _DELIMITERS.get(collection_format, "")
        joined = " ".join(_format_value(item) for item in obj)
        return joined.replace(" ", delimiter).strip("[]")
    return _format_value(obj)


def _sniff(data: bytes) -> str:
    for signature, content_type in _SIGNATURES:
        if data.startswith(signature):
            return content_type
    stripped = data.lstrip(b"\t\n\x0c\r ")
    lowered = stripped[:16].lower()
    for prefix in _HTML_PREFIXES:
        if lowered.startswith(prefix) and len(stripped) > len(prefix) and stripped[len(prefix)] in b" >":
            return "text/html; charset=utf-8"
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    if any(byte in _BINARY_BYTES for byte in data[:512]):
        return "application/octet-stream"
    return _TEXT_PLAIN


def detect_content_type(body: Any) -> str:
    """Guess the Content-Type header for a request body."""
    if isinstance(body, (dict, Mapping)) or (is_dataclass(body) and not isinstance(body, type)):
        return _JSON_TYPE
    if isinstance(body, str):
        return _TEXT_PLAIN
    if isinstance(body, (bytes, bytearray)):
        return _sniff(bytes(body))
    if isinstance(body, (list, tuple)):
        return _JSON_TYPE
    return _TEXT_PLAIN


def _header(headers: Any, name: str) -> str:
    if headers is None:
        return ""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value or ""
    return ""


def parse_cache_control(headers: Any) -> dict[str, str]:
    """Split the Cache-Control header into directives and their values."""
    directives: dict[str, str] = {}
    for part in _header(headers, "Cache-Control").split(","):
        part = part.strip(" ")
        if not part:
            continue
        if "=" in part:
            key_value = part.split("=")
            directives[key_value[0].strip(" ")] = key_value[1].strip(",")
        else:
            directives[part] = ""
    return directives


def _parse_http_date(value: str) -> datetime:
    return datetime.strptime(value, _RFC1123).replace(tzinfo=timezone.utc)


def cache_expires(response: Any) -> datetime | None:
    """When a cached response expires; now if its date is unreadable, None if unknown."""
    try:
        now = _parse_http_date(_header(response.headers, "date"))
    except ValueError:
        return datetime.now(timezone.utc)
    directives = parse_cache_control(response.headers)
    if "max-age" in directives:
        max_age = directives["max-age"]
        seconds = float(max_age) if _SECONDS.fullmatch(max_age) else 0.0
        return now + timedelta(seconds=seconds)
    expires_header = _header(response.headers, "Expires")
    if expires_header:
        try:
            return _parse_http_date(expires_header)
        except ValueError:
            return now
    return None


def _json_default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    raise TypeError(f"cannot encode {type(value).__name__} as JSON")


def _set_body(body: Any, content_type: str) -> bytes:
    if isinstance(body, io.IOBase) or hasattr(body, "read"):
        data = body.read()
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    elif isinstance(body, (bytes, bytearray)):
        payload = bytes(body)
    elif isinstance(body, str):
        payload = body.encode("utf-8")
    elif _JSON_CHECK.search(content_type):
        payload = (json.dumps(body, default=_json_default) + "\n").encode("utf-8")
    elif _XML_CHECK.search(content_type) and isinstance(body, ET.Element):
        payload = ET.tostring(body)
    else:
        payload = b""
    if not payload:
        raise ValueError(f"Invalid body type {content_type}\n")
    return payload


def _value_lists(values: Mapping[str, Any] | None) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for key, value in (values or {}).items():
        items = value if isinstance(value, (list, tuple)) else [value]
        result.setdefault(key, []).extend(str(item) for item in items)
    return result


def _quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _encode_multipart(
    form: dict[str, list[str]], file_name: str, file_bytes: bytes
) -> tuple[bytes, str]:
    boundary = uuid.uuid4().hex
    chunks: list[bytes] = []

    def part(disposition: str, content: bytes, content_type: str = "") -> None:
        chunks.append(f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode())
        if content_type:
            chunks.append(f"Content-Type: {content_type}\r\n".encode())
        chunks.extend((b"\r\n", content, b"\r\n"))

    for key, values in form.items():
        for value in values:
            if key.startswith("@"):
                path = Path(value)
                part(
                    f'form-data; name="{_quote(key[1:])}"; filename="{_quote(path.name)}"',
                    path.read_bytes(),
                    "application/octet-stream",
                )
            else:
                part(f'form-data; name="{_quote(key)}"', value.encode("utf-8"))
    if file_bytes and file_name:
        part(
            f'form-data; name="file"; filename="{_quote(Path(file_name).name)}"',
            file_bytes,
            "application/octet-stream",
        )
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


class APIClient:
    """Builds, sends and decodes requests against the API."""

    def __init__(
        self,
        base_path: str = "http://localhost",
        host: str = "",
        user_agent: str = "",
        default_header: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_path = base_path
        self.host = host
        self.user_agent = user_agent
        self.default_header = dict(default_header or {})
        self.session = session or requests.Session()

    def change_base_path(self, path: str) -> None:
        self.base_path = path

    def prepare_request(
        self,
        path: str,
        method: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
        file_name: str = "",
        file_bytes: bytes = b"",
        auth: BasicAuth | TokenSource | str | None = None,
    ) -> requests.PreparedRequest:
        """Assemble a request; ``auth`` is basic credentials, a bearer token or a token source."""
        header_params = dict(headers or {})
        form_values = _value_lists(form)
        payload: bytes | None = None

        if body is not None:
            content_type = header_params.get("Content-Type") or detect_content_type(body)
            header_params["Content-Type"] = content_type
            payload = _set_body(body, content_type)

        content_type = header_params.get("Content-Type", "")
        has_file = bool(file_bytes) and bool(file_name)
        if (content_type.startswith("multipart/form-data") and form_values) or has_file:
            if payload is not None:
                raise ValueError("Cannot specify postBody and multipart form at the same time.")
            payload, header_params["Content-Type"] = _encode_multipart(form_values, file_name, file_bytes)
            header_params["Content-Length"] = str(len(payload))

        if header_params.get("Content-Type", "").startswith("application/x-www-form-urlencoded") and form_values:
            if payload is not None:
                raise ValueError("Cannot specify postBody and x-www-form-urlencoded form at the same time.")
            pairs = [(key, value) for key in sorted(form_values) for value in form_values[key]]
            payload = urlencode(pairs).encode("ascii")
            header_params["Content-Length"] = str(len(payload))

        url = self._build_url(path, query)

        request_headers = requests.structures.CaseInsensitiveDict(header_params)
        if self.host:
            request_headers["Host"] = self.host
        if self.user_agent:
            request_headers["User-Agent"] = self.user_agent

        if isinstance(auth, BasicAuth):
            credentials = f"{auth.user_name}:{auth.password}".encode("utf-8")
            request_headers["Authorization"] = "Basic " + base64.b64encode(credentials).decode("ascii")
        elif isinstance(auth, str):
            request_headers["Authorization"] = "Bearer " + auth
        elif callable(auth):
            request_headers["Authorization"] = "Bearer " + auth()

        for name, value in self.default_header.items():
            if name in request_headers:
                request_headers[name] = f"{request_headers[name]}, {value}"
            else:
                request_headers[name] = value

        request = requests.Request(method=method.upper(), url=url, headers=dict(request_headers), data=payload)
        return request.prepare()

    @staticmethod
    def _build_url(path: str, query: Mapping[str, Any] | None) -> str:
        parts = urlsplit(path)
        merged: dict[str, list[str]] = {}
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            merged.setdefault(key, []).append(value)
        for key, values in _value_lists(query).items():
            merged.setdefault(key, []).extend(values)
        pairs = [(key, value) for key in sorted(merged) for value in merged[key]]
        return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs), parts.fragment))

    def call_api(self, request: requests.PreparedRequest) -> requests.Response:
        return self.session.send(request)

    def decode(self, data: bytes | str, content_type: str) -> Any:
        """Decode an XML or JSON response body according to its content type."""
        if "application/xml" in content_type:
            return ET.fromstring(data)
        if "application/json" in content_type:
            return json.loads(data)
        raise ValueError("undefined response type")