from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    # Account management lives in the identity service; this is the
    # read-side profile used for membership rosters.
    id: int
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
