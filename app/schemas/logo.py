from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

LogoKind = Literal["remote", "default", "hidden"]


class LogoResult(BaseModel):
    kind: LogoKind
    symbol: str
    url: str | None = None
    image: bytes | None = None
    content_type: str | None = None
    reason: str | None = None

    @classmethod
    def remote(cls, symbol: str, url: str, image: bytes, content_type: str) -> "LogoResult":
        return cls(kind="remote", symbol=symbol, url=url, image=image, content_type=content_type)

    @classmethod
    def default(cls, symbol: str, url: str | None = None) -> "LogoResult":
        return cls(kind="default", symbol=symbol, url=url)

    @classmethod
    def hidden(cls, symbol: str, reason: str) -> "LogoResult":
        return cls(kind="hidden", symbol=symbol, reason=reason)
