"""Membership workflow: request, invite, approve/decline and remove.

A (community, user) pair moves through these states:

    none ──request (self, public community)──▶ requested ──admin──▶ accepted
      │                                            │                 declined
      └──invite (admin, for someone else)────▶ invited ───self───▶ accepted
                                                                    declined
    any ──remove (admin)──▶ none

Approving or declining a pending link needs the link's verification code,
presented by the counterpart: the invited user answers an invitation, an
admin answers a join request.  A user can never approve their own request.

Every call checks all of its preconditions before it writes anything, and
raises the first one that fails.  Each call makes at most one mutating
store call, so concurrent requests can race; the (community, user) unique
key keeps duplicate creation harmless and an overshoot of the member quota
by one under load is accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from community_service.core.metrics import ADMISSION_REJECTIONS, MEMBERSHIP_TRANSITIONS
from community_service.models.community import (
    Community,
    LinkStatus,
    MemberProfile,
    MembershipLink,
    Privacy,
    Role,
    SignupPolicy,
)
from community_service.repos.community_repo import CommunityRepo
from community_service.repos.membership_link_repo import MembershipLinkRepo
from community_service.repos.user_repo import UserRepo
from community_service.services.access_policy import (
    can_manage_community,
    can_view_membership_list,
)
from community_service.services.capacity import admits_member, quota_for
from community_service.services.errors import (
    CapacityExceededError,
    CodeMismatchError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)
from community_service.services.verification_codes import codes_match, new_code

logger = logging.getLogger(__name__)

Outcome = Literal["requested", "invited", "joined", "declined"]

_DECISIONS = (LinkStatus.ACCEPTED, LinkStatus.DECLINED)

_STORED_OUTCOMES: dict[LinkStatus, Outcome] = {
    LinkStatus.REQUESTED: "requested",
    LinkStatus.INVITED: "invited",
    LinkStatus.ACCEPTED: "joined",
    LinkStatus.DECLINED: "declined",
}


@dataclass(frozen=True, slots=True)
class MembershipOutcome:
    """Result of request_or_invite.

    created is False when a link already existed for the pair; link is then
    the stored, untouched link rather than the one this call would have made,
    and outcome describes that stored link.
    """

    outcome: Outcome
    link: MembershipLink
    created: bool

    @classmethod
    def of(
        cls, outcome: Outcome, stored: MembershipLink, created: bool
    ) -> MembershipOutcome:
        if not created:
            outcome = _STORED_OUTCOMES[stored.status]
        return cls(outcome=outcome, link=stored, created=created)


class MembershipService:
    def __init__(
        self,
        communities: CommunityRepo,
        links: MembershipLinkRepo,
        users: UserRepo,
        code_factory: Callable[[int, int], str] = new_code,
    ) -> None:
        self._communities = communities
        self._links = links
        self._users = users
        self._new_code = code_factory

    # ------------------------------------------------------------------
    # none -> requested | invited | accepted
    # ------------------------------------------------------------------

    async def request_or_invite(
        self, community_id: int, subject_id: int, actor_id: int
    ) -> MembershipOutcome:
        transition = "request" if actor_id == subject_id else "invite"
        try:
            community = await self._require_community(community_id)
            await self._check_admission(community)
            if actor_id == subject_id:
                result = await self._self_request(community, subject_id)
            else:
                result = await self._invite(community, subject_id, actor_id)
        except ServiceError:
            MEMBERSHIP_TRANSITIONS.labels(transition=transition, outcome="rejected").inc()
            raise

        MEMBERSHIP_TRANSITIONS.labels(
            transition="join" if result.outcome == "joined" else transition,
            outcome="created" if result.created else "existing",
        ).inc()
        return result

    async def _check_admission(self, community: Community) -> None:
        quota = quota_for(community.plan)
        current = await self._links.count_accepted(community.id)
        if admits_member(quota, current):
            return
        ADMISSION_REJECTIONS.labels(plan=str(community.plan)).inc()
        logger.warning(
            "Membership refused, community full community=%d plan=%s count=%d allowed=%d",
            community.id,
            community.plan,
            current,
            quota.max_members,
        )
        raise CapacityExceededError(
            "this community cannot accept anymore members",
            data={"current_count": current, "allowed": quota.max_members},
        )

    async def _self_request(
        self, community: Community, user_id: int
    ) -> MembershipOutcome:
        if community.privacy != Privacy.PUBLIC:
            logger.warning(
                "Self-join refused for private community=%d user=%d",
                community.id,
                user_id,
            )
            raise PermissionDeniedError()

        if community.signup_policy == SignupPolicy.AUTO_ACCEPT:
            joined = MembershipLink(
                community_id=community.id,
                user_id=user_id,
                role=Role.MEMBER,
                status=LinkStatus.ACCEPTED,
            )
            created = await self._links.upsert(joined)
            # An auto-accepted join still files the usual pending request.
            # The accepted link above already owns the pair, so this insert
            # is absorbed as a no-op.
            await self._links.upsert(
                MembershipLink(
                    community_id=community.id,
                    user_id=user_id,
                    role=Role.MEMBER,
                    status=LinkStatus.REQUESTED,
                    code=self._new_code(community.id, user_id),
                )
            )
            stored = await self._links.get(community.id, user_id) or joined
            logger.info(
                "User joined community=%d user=%d created=%s",
                community.id,
                user_id,
                created,
            )
            return MembershipOutcome.of("joined", stored, created)

        requested = MembershipLink(
            community_id=community.id,
            user_id=user_id,
            role=Role.MEMBER,
            status=LinkStatus.REQUESTED,
            code=self._new_code(community.id, user_id),
        )
        return await self._create(requested, "requested")

    async def _invite(
        self, community: Community, subject_id: int, actor_id: int
    ) -> MembershipOutcome:
        role = await self._links.role_for(community.id, actor_id)
        if not can_manage_community(role):
            logger.warning(
                "Invite refused: user=%d role=%s community=%d",
                actor_id,
                role,
                community.id,
            )
            raise PermissionDeniedError()

        if await self._users.get_by_id(subject_id) is None:
            raise NotFoundError("user not found")

        invited = MembershipLink(
            community_id=community.id,
            user_id=subject_id,
            role=Role.MEMBER,
            status=LinkStatus.INVITED,
            code=self._new_code(community.id, subject_id),
        )
        return await self._create(invited, "invited")

    async def _create(self, link: MembershipLink, outcome: Outcome) -> MembershipOutcome:
        created = await self._links.upsert(link)
        if created:
            stored = link
        else:
            stored = await self._links.get(link.community_id, link.user_id) or link
        logger.info(
            "Membership %s community=%d user=%d created=%s",
            outcome,
            link.community_id,
            link.user_id,
            created,
        )
        return MembershipOutcome.of(outcome, stored, created)

    # ------------------------------------------------------------------
    # requested | invited -> accepted | declined
    # ------------------------------------------------------------------

    async def process(
        self,
        community_id: int,
        subject_id: int,
        actor_id: int,
        code: str,
        new_status: LinkStatus,
    ) -> MembershipLink:
        try:
            link = await self._check_process(
                community_id, subject_id, actor_id, code, new_status
            )
        except ServiceError:
            MEMBERSHIP_TRANSITIONS.labels(transition="process", outcome="rejected").inc()
            raise

        await self._links.set_status(community_id, subject_id, new_status)
        MEMBERSHIP_TRANSITIONS.labels(
            transition="process", outcome=str(new_status)
        ).inc()
        logger.info(
            "Membership %s -> %s community=%d user=%d by=%d",
            link.status,
            new_status,
            community_id,
            subject_id,
            actor_id,
        )
        updated = await self._links.get(community_id, subject_id)
        if updated is None:
            # removed by an admin between our read and write
            raise NotFoundError("membership link not found")
        return updated

    async def _check_process(
        self,
        community_id: int,
        subject_id: int,
        actor_id: int,
        code: str,
        new_status: LinkStatus,
    ) -> MembershipLink:
        if new_status not in _DECISIONS:
            raise ValidationError(
                "status must be accepted or declined",
                data={"status": str(new_status)},
            )
        if not code:
            raise ValidationError("code and status are required")

        await self._require_community(community_id)
        link = await self._links.get(community_id, subject_id)
        if link is None:
            raise NotFoundError("membership link not found")

        if link.status == LinkStatus.ACCEPTED:
            raise InvalidTransitionError(
                "link is already accepted and cannot be modified here",
                code="already_accepted",
            )

        if not codes_match(link.code, code):
            logger.warning(
                "Verification code mismatch community=%d user=%d by=%d",
                community_id,
                subject_id,
                actor_id,
            )
            raise CodeMismatchError("code does not match")

        if actor_id == subject_id:
            if link.status != LinkStatus.INVITED:
                raise InvalidTransitionError(
                    "you can only answer links where you were invited",
                    code="not_invited",
                )
            return link

        role = await self._links.role_for(community_id, actor_id)
        if not can_manage_community(role):
            logger.warning(
                "Approval refused: user=%d role=%s community=%d",
                actor_id,
                role,
                community_id,
            )
            raise PermissionDeniedError()
        if link.status != LinkStatus.REQUESTED:
            raise InvalidTransitionError(
                "the status must be 'requested'", code="not_requested"
            )
        return link

    # ------------------------------------------------------------------
    # any -> none
    # ------------------------------------------------------------------

    async def remove(self, community_id: int, subject_id: int, actor_id: int) -> None:
        try:
            await self._require_community(community_id)
            role = await self._links.role_for(community_id, actor_id)
            if not can_manage_community(role):
                logger.warning(
                    "Removal refused: user=%d role=%s community=%d",
                    actor_id,
                    role,
                    community_id,
                )
                raise PermissionDeniedError()
            removed = await self._links.delete(community_id, subject_id)
            if not removed:
                raise NotFoundError("membership link not found")
        except ServiceError:
            MEMBERSHIP_TRANSITIONS.labels(transition="remove", outcome="rejected").inc()
            raise

        MEMBERSHIP_TRANSITIONS.labels(transition="remove", outcome="removed").inc()
        logger.info(
            "Membership removed community=%d user=%d by=%d",
            community_id,
            subject_id,
            actor_id,
        )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    async def role_for(self, community_id: int, user_id: int) -> Role | None:
        return await self._links.role_for(community_id, user_id)

    async def list_links(
        self,
        community_id: int,
        caller_id: int,
        status: LinkStatus | None = None,
    ) -> tuple[list[MemberProfile], Role | None]:
        """Return the roster (optionally one status only) and the caller's role.

        The role comes back so the caller can decide how much of each link
        to show.
        """
        await self._require_community(community_id)
        role = await self._links.role_for(community_id, caller_id)
        if not can_view_membership_list(role):
            raise PermissionDeniedError()
        return await self._links.list_for_community(community_id, status), role

    async def _require_community(self, community_id: int) -> Community:
        community = await self._communities.get_by_id(community_id)
        if community is None:
            raise NotFoundError("community not found")
        return community
