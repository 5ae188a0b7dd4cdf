"""
ParcelFlow Backend — Abstract Token Verifier Interface
========================================================

What:  Contract for turning an opaque bearer credential into a verified email.
How:   Concrete implementations inherit from TokenVerifier and implement
       verify(). The authorization gate depends only on this interface, so
       tests substitute a verifier that maps fixed tokens to emails.
Who:   Called by parcelflow.authorization.get_principal for every
       authenticated request.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VerifiedIdentity:
    """Who the credential belongs to, as asserted by the identity provider."""
    email: str
    uid: Optional[str] = None


class TokenVerifier(ABC):
    """
    Contract:
        - verify() returns a VerifiedIdentity with a non-empty email
        - a rejected credential raises UnauthorizedError
        - an unreachable provider raises IdentityServiceError
    """

    @abstractmethod
    async def verify(self, token: str) -> VerifiedIdentity:
        ...
