from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

PLACEHOLDER = "---"


class Notification(BaseModel):
    kind: Literal["transient", "fatal"]
    title: str
    message: str


class DisplayState(BaseModel):
    loading: bool = False
    selected_symbol: str | None = None
    company_title: str = PLACEHOLDER
    symbol_text: str = PLACEHOLDER
    price_text: str = PLACEHOLDER
    change_text: str = PLACEHOLDER
    change_color: Literal["black", "green", "red"] = "black"
    quote_visible: bool = False
    logo_kind: Literal["remote", "default", "hidden"] = "hidden"
    logo_url: str | None = None
    notifications: list[Notification] = Field(default_factory=list)


class SelectionRequest(BaseModel):
    company_name: str | None = None
    symbol: str | None = None
