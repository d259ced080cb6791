"""Community access checks.

Plain predicates over data the caller has already fetched (the community
and the caller's accepted role, ``None`` when the caller has no accepted
link).  They do no I/O and never raise; the services decide which error
to raise when one returns False.  Anything not explicitly allowed is
denied.
"""

from __future__ import annotations

from community_service.models.community import Community, Privacy, Role

_MEMBER_ROLES = frozenset({Role.ADMIN, Role.MEMBER})


def can_view_community(community: Community, caller_role: Role | None) -> bool:
    if community.privacy == Privacy.PUBLIC:
        return True
    return caller_role in _MEMBER_ROLES


def can_manage_community(caller_role: Role | None) -> bool:
    return caller_role == Role.ADMIN


def can_view_membership_list(caller_role: Role | None) -> bool:
    return caller_role in _MEMBER_ROLES


def should_redact_admin_fields(caller_role: Role | None) -> bool:
    """Join code, short code, signup policy and billing fields are admin-only."""
    return caller_role != Role.ADMIN


def should_redact_verification_codes(caller_role: Role | None) -> bool:
    return caller_role != Role.ADMIN
