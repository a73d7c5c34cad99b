"""Self-registration, password change and token-based password recovery."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

from roombook.adapters.ports import GatewayError, Identity, ReservationGateway
from roombook.domain.classifier import classify_error
from roombook.domain.errors import AuthenticationError, ValidationError
from roombook.domain.session import SessionStore

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass
class AccountResult:
    action: Literal[
        "registered",
        "password_changed",
        "reset_requested",
        "password_reset",
        "invalid",
        "rejected",
    ]
    message: str = ""
    identity: Identity | None = None


def check_new_password(password: str, confirmation: str) -> None:
    if password != confirmation:
        raise ValidationError("The passwords do not match.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"The password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )


class AccountService:

    def __init__(self, gateway: ReservationGateway, session: SessionStore):
        self._gateway = gateway
        self._session = session

    def _rejected(self, exc: GatewayError, invalidate: bool = False) -> AccountResult:
        classification = classify_error(exc)
        if invalidate and classification.kind == "authentication":
            self._session.invalidate()
        log.info("account call rejected kind=%s status=%s", classification.kind, exc.status)
        return AccountResult(action="rejected", message=classification.message)

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        confirmation: str,
        full_name: str | None = None,
    ) -> AccountResult:
        """Create an account. Does not log in."""
        try:
            check_new_password(password, confirmation)
        except ValidationError as exc:
            return AccountResult(action="invalid", message=exc.message)
        if not email.strip() or not username.strip():
            return AccountResult(action="invalid", message="Email and username are required.")

        try:
            identity = await asyncio.to_thread(
                self._gateway.register,
                email.strip(),
                username.strip(),
                password,
                (full_name or "").strip() or None,
            )
        except GatewayError as exc:
            return self._rejected(exc)
        log.info("registered %s", identity.username)
        return AccountResult(action="registered", identity=identity)

    async def change_password(
        self, current_password: str, new_password: str, confirmation: str
    ) -> AccountResult:
        try:
            check_new_password(new_password, confirmation)
            self._session.require()
        except (ValidationError, AuthenticationError) as exc:
            return AccountResult(action="invalid", message=exc.message)

        try:
            await asyncio.to_thread(
                self._gateway.change_password, current_password, new_password
            )
        except GatewayError as exc:
            return self._rejected(exc, invalidate=True)
        log.info("password changed for %s", self._session.identity_label)
        return AccountResult(action="password_changed")

    async def forgot_password(self, email: str) -> AccountResult:
        """
        Ask the backend to mail a reset link. The outcome is the same whether
        or not the address is registered.
        """
        email = (email or "").strip()
        if not email:
            return AccountResult(action="invalid", message="Enter your email address.")

        try:
            await asyncio.to_thread(self._gateway.forgot_password, email)
        except GatewayError as exc:
            return self._rejected(exc)
        log.info("password reset requested")
        return AccountResult(
            action="reset_requested",
            message=f"If {email} is registered, a link to reset the password has been sent.",
        )

    async def reset_password(
        self, token: str | None, new_password: str, confirmation: str
    ) -> AccountResult:
        """Set a new password with the token from the reset link. Does not log in."""
        if not (token or "").strip():
            return AccountResult(
                action="invalid",
                message="Recovery token not found. Check the link sent by email.",
            )
        try:
            check_new_password(new_password, confirmation)
        except ValidationError as exc:
            return AccountResult(action="invalid", message=exc.message)

        try:
            await asyncio.to_thread(self._gateway.reset_password, token.strip(), new_password)
        except GatewayError as exc:
            return self._rejected(exc)
        log.info("password reset with recovery token")
        return AccountResult(action="password_reset")
