from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import UTC, datetime

# Short codes tie a pending membership link to whoever may confirm it:
# the invited user, or an admin answering a join request.  They are
# handed out to that counterpart and presented back on approve/decline.

_SALT = "community-membership-request"
CODE_LENGTH = 9


def new_code(community_id: int, user_id: int) -> str:
    # the random component keeps the code from being derivable from the ids
    stamp = datetime.now(UTC).strftime("%Y-%m-%d-%H:%M:%S.%f")
    material = f"{stamp}-{secrets.randbits(63)}-^{_SALT}!!{community_id}<>{user_id}"
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return "_" + digest[:CODE_LENGTH]


def codes_match(expected: str | None, supplied: str) -> bool:
    """Exact, case-sensitive comparison in constant time."""
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
