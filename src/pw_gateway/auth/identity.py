"""Caller identity resolved from the Bearer token by the auth dependency."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    account_id: int
    external_id: str          # JWT "sub"
    display_name: str
    is_admin: bool = False
