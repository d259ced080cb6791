from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from community_service.db.engine import get_async_session
from community_service.middleware.request_context import user_id_var
from community_service.models.principal import Principal
from community_service.repos.community_repo import InMemoryCommunityRepo
from community_service.repos.membership_link_repo import InMemoryMembershipLinkRepo
from community_service.repos.pg_community_repo import PgCommunityRepo
from community_service.repos.pg_membership_link_repo import PgMembershipLinkRepo
from community_service.repos.pg_request_link_repo import PgRequestLinkRepo
from community_service.repos.pg_user_repo import PgUserRepo
from community_service.repos.request_link_repo import InMemoryRequestLinkRepo
from community_service.repos.user_repo import InMemoryUserRepo
from community_service.services import token_service
from community_service.services.community_service import CommunityService
from community_service.services.membership_service import MembershipService

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")

# ---------------------------------------------------------------------------
# In-memory stores, used when DATABASE_URL is not set
# ---------------------------------------------------------------------------

user_repo = InMemoryUserRepo()
community_repo = InMemoryCommunityRepo()
link_repo = InMemoryMembershipLinkRepo(user_repo)
request_link_repo = InMemoryRequestLinkRepo()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Validate the bearer token and return the caller.

    ``sub`` must be the caller's numeric user id.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        logger.warning("Token rejected, non-numeric sub=%r", claims["sub"])
        raise _unauthorized("Invalid token") from None

    principal = Principal(user_id=user_id, roles=frozenset(claims.get("roles", [])))
    user_id_var.set(principal.user_id)
    logger.debug("Token validated for user=%d", principal.user_id)
    return principal


# ---------------------------------------------------------------------------
# Services, one per request
# ---------------------------------------------------------------------------
# FastAPI caches get_async_session per request, so both services built for
# one request share a session and commit or roll back together.


def get_community_service(
    session: Annotated[AsyncSession | None, Depends(get_async_session)],
) -> CommunityService:
    if session is None:
        return CommunityService(community_repo, link_repo, request_link_repo)
    return CommunityService(
        PgCommunityRepo(session),
        PgMembershipLinkRepo(session),
        PgRequestLinkRepo(session),
    )


def get_membership_service(
    session: Annotated[AsyncSession | None, Depends(get_async_session)],
) -> MembershipService:
    if session is None:
        return MembershipService(community_repo, link_repo, user_repo)
    return MembershipService(
        PgCommunityRepo(session),
        PgMembershipLinkRepo(session),
        PgUserRepo(session),
    )
