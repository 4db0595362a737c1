from __future__ import annotations

import requests

from app.errors import NetworkError, ParseError
from app.schemas.logo import LogoResult

_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
)


def sniff_image_type(data: bytes) -> str | None:
    """Return the image MIME type for ``data``, or None if it is not an image."""
    if not data:
        return None
    for signature, content_type in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    head = data[:512].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "image/svg+xml"
    return None


def is_usable_url(url: str) -> bool:
    try:
        prepared = requests.Request("GET", url).prepare()
    except (requests.RequestException, ValueError):
        return False
    return prepared.url is not None and prepared.url.startswith(("http://", "https://"))


class LogoResolver:
    """Resolve a symbol's logo: metadata lookup, then the image download.

    Metadata failures raise; anything that goes wrong after a URL is known
    degrades to a default or hidden logo instead.
    """

    def __init__(self, rest_client) -> None:
        self.rest_client = rest_client

    def resolve_logo(self, symbol: str) -> LogoResult:
        payload = self.rest_client.get_logo(symbol)
        url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(url, str):
            raise ParseError(f"logo payload for {symbol} has no string url")

        if not is_usable_url(url):
            print(f"[LOGO][default] symbol={symbol} url={url!r}", flush=True)
            return LogoResult.default(symbol, url=url or None)

        try:
            data = self.rest_client.download(url)
        except NetworkError as exc:
            print(f"[LOGO][download_error] symbol={symbol} error={exc}", flush=True)
            return LogoResult.hidden(symbol, reason=f"download failed: {exc}")

        content_type = sniff_image_type(data)
        if content_type is None:
            print(f"[LOGO][undecodable] symbol={symbol} bytes={len(data)}", flush=True)
            return LogoResult.hidden(symbol, reason="image bytes not decodable")

        return LogoResult.remote(symbol, url=url, image=data, content_type=content_type)
