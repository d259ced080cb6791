from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated caller, as resolved from the bearer token.

    Community roles are not carried here: they depend on the community in
    the URL and are looked up per request from the membership links.
    """

    user_id: int
    roles: frozenset[str] = frozenset()
