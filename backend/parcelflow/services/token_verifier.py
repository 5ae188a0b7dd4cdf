"""
ParcelFlow Backend — Firebase ID Token Verifier
=================================================

What:  TokenVerifier backed by firebase-admin (`auth.verify_id_token`).
How:   The SDK call is synchronous (it may download Google's signing
       certificates), so it runs in Starlette's threadpool. Certificate
       downloads that fail are retried with tenacity exponential backoff;
       every other verification failure is final.

Error mapping:
    InvalidIdTokenError / Expired / Revoked / UserDisabled / malformed → 401
    CertificateFetchError after all attempts                         → 503
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials
from starlette.concurrency import run_in_threadpool
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
)

from parcelflow.config import settings
from parcelflow.exceptions import IdentityServiceError, UnauthorizedError
from parcelflow.services.identity_base import TokenVerifier, VerifiedIdentity

logger = logging.getLogger(__name__)


class FirebaseTokenVerifier(TokenVerifier):
    """
    Verifies Firebase Authentication ID tokens.

    The firebase app is initialized lazily under its own name, so importing
    this module never touches credentials and never collides with a default
    app created elsewhere in the process.
    """

    APP_NAME = "parcelflow"

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        project_id: Optional[str] = None,
    ):
        self.credentials_path = credentials_path if credentials_path is not None else settings.firebase_credentials_path
        self.project_id = project_id if project_id is not None else settings.firebase_project_id
        self._app: Optional[firebase_admin.App] = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(self.APP_NAME)
            except ValueError:
                credential = (
                    credentials.Certificate(self.credentials_path)
                    if self.credentials_path
                    else None
                )
                options = {"projectId": self.project_id} if self.project_id else None
                self._app = firebase_admin.initialize_app(credential, options, name=self.APP_NAME)
                logger.info(
                    "Firebase app initialized (project=%s, credentials=%s)",
                    self.project_id or "<from credentials>",
                    "service account" if self.credentials_path else "application default",
                )
        return self._app

    async def verify(self, token: str) -> VerifiedIdentity:
        if not token:
            raise UnauthorizedError()

        try:
            decoded = await run_in_threadpool(self._verify_with_retry, token)
        except auth.CertificateFetchError as e:
            logger.error("Could not fetch Firebase signing certificates: %s", str(e))
            raise IdentityServiceError(context={"error_type": type(e).__name__})
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
            # ExpiredIdTokenError and RevokedIdTokenError subclass InvalidIdTokenError
            logger.info("Rejected bearer token: %s", type(e).__name__)
            raise UnauthorizedError(context={"reason": type(e).__name__})

        email = decoded.get("email")
        if not email:
            logger.info("Bearer token for uid=%s carries no email", decoded.get("uid"))
            raise UnauthorizedError(context={"reason": "email_missing"})

        return VerifiedIdentity(email=email, uid=decoded.get("uid"))

    @retry(
        retry=retry_if_exception_type(auth.CertificateFetchError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            multiplier=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _verify_with_retry(self, token: str) -> dict:
        return auth.verify_id_token(token, app=self._get_app())


# ── Singleton Instance ────────────────────────────────────────────────────
token_verifier = FirebaseTokenVerifier()


def get_token_verifier() -> TokenVerifier:
    """FastAPI dependency; tests override it with an in-memory verifier."""
    return token_verifier
