"""Content negotiation: request body encoding and response body decoding.

Decoding picks a strategy from an ordered table of media-type matchers.
The first matcher that accepts the normalised media type wins; anything
unmatched (or a missing ``Content-Type``) is decoded as text with a
warning.  New strategies are added with :meth:`ContentCodec.register_decoder`
without touching the pipeline.

Encoding turns a :class:`~gholafetch.models.RequestSpec` body into a
transport payload and may rewrite the ``Content-Type`` header in place.
"""

from __future__ import annotations

import json
from email import policy
from email.parser import BytesParser
from typing import Any, Callable, Mapping, MutableMapping, Optional

import httpx

from gholafetch.body import Blob, FormData
from gholafetch.diagnostics import DiagnosticSink, LoggingSink

JSON_MEDIA_TYPE = "application/json"
FILE_FIELD_NAME = "file"

MediaMatcher = Callable[[str], bool]
Decoder = Callable[[bytes, str, str], Any]
"""``decoder(content, media_type, raw_content_type) -> decoded value``."""

_BINARY_PREFIXES = (
    "application/octet-stream",
    "image/",
    "audio/",
    "video/",
    "application/pdf",
    "application/zip",
    "application/gzip",
    "application/x-gzip",
    "application/x-tar",
    "application/x-7z-compressed",
    "application/x-rar-compressed",
    "application/msword",
    "application/vnd.ms-",
    "application/vnd.openxmlformats-officedocument",
)


def normalize_media_type(content_type: Optional[str]) -> str:
    """Strip parameters and lowercase: ``"Text/HTML; charset=utf-8"`` -> ``"text/html"``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _charset(content_type: str) -> str:
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return "utf-8"


def _is_json(media_type: str) -> bool:
    return media_type in (JSON_MEDIA_TYPE, "application/problem+json") or media_type.endswith("+json")


def _is_binary(media_type: str) -> bool:
    return media_type.startswith(_BINARY_PREFIXES)


def _decode_json(content: bytes, media_type: str, content_type: str) -> Any:
    if not content.strip():
        return None
    return json.loads(content.decode(_charset(content_type)))


def _decode_text(content: bytes, media_type: str, content_type: str) -> str:
    return content.decode(_charset(content_type), errors="replace")


def _decode_multipart(content: bytes, media_type: str, content_type: str) -> FormData:
    head = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("latin-1")
    message = BytesParser(policy=policy.HTTP).parsebytes(head + content)
    if not message.is_multipart():
        raise ValueError("multipart body has no parts")

    form = FormData()
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition") or ""
        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        if filename is None:
            form.append(name, payload.decode(part.get_content_charset() or "utf-8"))
        else:
            form.append(name, Blob(payload, part.get_content_type(), filename))
    return form


def _decode_blob(content: bytes, media_type: str, content_type: str) -> Blob:
    return Blob(content=content, content_type=media_type)


def _decode_buffer(content: bytes, media_type: str, content_type: str) -> bytes:
    return bytes(content)


class ContentCodec:
    """Encodes request bodies and decodes response bodies by media type.

    Args:
        sink: Where decode fallbacks and failures are reported.
        strip_multipart_content_type: Remove an explicit ``Content-Type``
            from :class:`~gholafetch.body.FormData` bodies so the
            environment can attach its own boundary parameter.
    """

    def __init__(
        self,
        sink: Optional[DiagnosticSink] = None,
        strip_multipart_content_type: bool = False,
    ) -> None:
        self.sink: DiagnosticSink = sink or LoggingSink()
        self.strip_multipart_content_type = strip_multipart_content_type
        self._decoders: list[tuple[MediaMatcher, Decoder]] = [
            (_is_json, _decode_json),
            (lambda media: media.startswith("text/"), _decode_text),
            (lambda media: media == "multipart/form-data", _decode_multipart),
            (lambda media: media == "application/octet-buffer", _decode_buffer),
            (_is_binary, _decode_blob),
        ]

    def register_decoder(self, matcher: MediaMatcher | str, decoder: Decoder) -> None:
        """Add a strategy that takes precedence over the built-in ones.

        Args:
            matcher: A predicate over the normalised media type, or a prefix
                string such as ``"application/x-ndjson"``.
            decoder: Callable receiving ``(content, media_type, content_type)``.
        """
        if isinstance(matcher, str):
            prefix = matcher.lower()
            matcher = lambda media: media.startswith(prefix)  # noqa: E731
        self._decoders.insert(0, (matcher, decoder))

    # ------------------------------------------------------------------ #
    # Decoding
    # ------------------------------------------------------------------ #

    def decode(self, content: bytes, headers: Mapping[str, str]) -> Any:
        """Decode a response body; never raises.

        Returns:
            The decoded value, or ``None`` if the selected strategy failed.
        """
        content_type = _get_header(headers, "Content-Type") or ""
        media_type = normalize_media_type(content_type)

        decoder: Decoder = _decode_text
        if not media_type:
            self.sink.warning("No Content-Type header in response")
        else:
            for matcher, candidate in self._decoders:
                if matcher(media_type):
                    decoder = candidate
                    break
            else:
                self.sink.warning(f"Unsupported content type: {content_type}")

        try:
            return decoder(content, media_type, content_type)
        except Exception as exc:
            self.sink.error(f"Error processing response body: {exc}")
            return None

    # ------------------------------------------------------------------ #
    # Encoding
    # ------------------------------------------------------------------ #

    def encode(self, body: Any, headers: MutableMapping[str, str]) -> Any:
        """Turn a request body into a transport payload, adjusting *headers*.

        Args:
            body: The ``body`` of the :class:`~gholafetch.models.RequestSpec`.
            headers: Request headers; ``Content-Type`` may be set or removed.

        Returns:
            The payload to hand to the transport.
        """
        if isinstance(body, FormData):
            if self.strip_multipart_content_type:
                _pop_header(headers, "Content-Type")
            return body

        if isinstance(body, Blob) or _is_file_like(body):
            blob = body if isinstance(body, Blob) else Blob.from_file(body)
            form = FormData()
            form.append(FILE_FIELD_NAME, blob)
            _pop_header(headers, "Content-Type")
            return form

        if isinstance(body, (str, bytes, bytearray, httpx.QueryParams)):
            return body

        if body is None:
            return None

        if _get_header(headers, "Content-Type") is None:
            headers["Content-Type"] = JSON_MEDIA_TYPE
        return json.dumps(body)


def _is_file_like(value: Any) -> bool:
    return callable(getattr(value, "read", None))


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works on plain dicts."""
    if isinstance(headers, httpx.Headers):
        return headers.get(name)
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _pop_header(headers: MutableMapping[str, str], name: str) -> None:
    lowered = name.lower()
    for key in [key for key in headers if key.lower() == lowered]:
        del headers[key]
