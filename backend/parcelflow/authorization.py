"""
ParcelFlow Backend — Authorization Gate
=========================================

What:  Resolves the caller of a request to a Principal and evaluates
       composable access predicates against it.
How:   Predicates are plain callables `Principal | None → Decision`. A
       Decision is an explicit Allow or Deny(reason); enforce() turns a Deny
       into the matching HTTP error. Route dependencies are assembled with
       require(...), so each endpoint states its rule in its signature:

           principal: Principal = Depends(require(has_role(UserRole.ADMIN)))

Decision → HTTP:
    Deny(unauthenticated)  → 401 (no credential, or the verifier rejected it)
    Deny(forbidden)        → 403 (authenticated, rule not satisfied)

Role lookup:
    The verified email is looked up in the users table on every request.
    An email without a user row is treated as role 'user'.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from parcelflow.database import get_db_session
from parcelflow.exceptions import ForbiddenError, UnauthorizedError, database_errors
from parcelflow.lifecycle import UserRole
from parcelflow.repositories.users import UserRepository
from parcelflow.services.identity_base import TokenVerifier
from parcelflow.services.token_verifier import get_token_verifier

logger = logging.getLogger(__name__)


# ── Types ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Principal:
    """The verified caller of a request."""
    email: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class DenialKind(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    kind: Optional[DenialKind] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, kind: DenialKind = DenialKind.FORBIDDEN) -> "Decision":
        return cls(allowed=False, reason=reason, kind=kind)


Predicate = Callable[[Optional[Principal]], Decision]

_UNAUTHENTICATED = Decision.deny("Unauthorized", DenialKind.UNAUTHENTICATED)


# ── Predicates ────────────────────────────────────────────────────────────

def authenticated(principal: Optional[Principal]) -> Decision:
    if principal is None:
        return _UNAUTHENTICATED
    return Decision.allow()


def has_role(*roles: UserRole) -> Predicate:
    def check(principal: Optional[Principal]) -> Decision:
        if principal is None:
            return _UNAUTHENTICATED
        if principal.role in roles:
            return Decision.allow()
        return Decision.deny("Forbidden: requires role " + " or ".join(r.value for r in roles))
    return check


def is_self(email: Optional[str]) -> Predicate:
    """Allows the principal whose email equals `email`."""
    def check(principal: Optional[Principal]) -> Decision:
        if principal is None:
            return _UNAUTHENTICATED
        if email is not None and principal.email == email:
            return Decision.allow()
        return Decision.deny("Forbidden: not your resource")
    return check


def any_of(*predicates: Predicate) -> Predicate:
    """Allows when any predicate allows; otherwise returns the first denial."""
    def check(principal: Optional[Principal]) -> Decision:
        denial = None
        for predicate in predicates:
            decision = predicate(principal)
            if decision.allowed:
                return decision
            denial = denial or decision
        return denial or Decision.deny("Forbidden")
    return check


def evaluate(principal: Optional[Principal], *predicates: Predicate) -> Decision:
    """All predicates must allow; the first denial wins."""
    decision = authenticated(principal)
    if not decision.allowed:
        return decision
    for predicate in predicates:
        decision = predicate(principal)
        if not decision.allowed:
            return decision
    return Decision.allow()


def enforce(decision: Decision) -> None:
    if decision.allowed:
        return
    if decision.kind == DenialKind.UNAUTHENTICATED:
        raise UnauthorizedError(decision.reason or "Unauthorized")
    raise ForbiddenError(decision.reason or "Forbidden")


def authorize(principal: Optional[Principal], *predicates: Predicate) -> None:
    """evaluate() + enforce(), for checks that need request data (owner emails)."""
    enforce(evaluate(principal, *predicates))


# ── FastAPI dependencies ──────────────────────────────────────────────────

def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization is None:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError(context={"reason": "malformed_authorization_header"})
    return token.strip()


async def get_optional_principal(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Optional[Principal]:
    """
    Returns None when no Authorization header is sent. A header that is
    present but malformed or rejected is always a 401.
    """
    token = _bearer_token(authorization)
    if token is None:
        return None

    identity = await verifier.verify(token)

    with database_errors("role lookup", email=identity.email):
        user = await UserRepository(db).get_by_email(identity.email)

    role = UserRole.USER
    if user is not None and user.role:
        try:
            role = UserRole(user.role)
        except ValueError:
            logger.warning("Unknown role %r stored for %s; treating as user", user.role, identity.email)

    return Principal(email=identity.email, role=role)


async def get_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    enforce(authenticated(principal))
    return principal


def require(*predicates: Predicate) -> Callable:
    """Builds a dependency that yields the Principal once every predicate allows."""

    async def dependency(
        principal: Optional[Principal] = Depends(get_optional_principal),
    ) -> Principal:
        decision = evaluate(principal, *predicates)
        if not decision.allowed:
            logger.info(
                "Access denied (%s) for %s: %s",
                decision.kind.value if decision.kind else "forbidden",
                principal.email if principal else "<anonymous>",
                decision.reason,
            )
        enforce(decision)
        return principal

    return dependency


require_admin = require(has_role(UserRole.ADMIN))
