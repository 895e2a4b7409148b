from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from uavfleet.application.services.auth_service import AuthService
from uavfleet.application.stores.base import Store
from uavfleet.domain.entities import AuthTokens, User
from uavfleet.infrastructure.errors import AppError, error_message
from uavfleet.repositories.sessions import SessionRepo, StoredSession

logger = logging.getLogger(__name__)


class AuthState(BaseModel):
    user: Optional[User] = None
    token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


_LOGGED_OUT = dict(
    user=None,
    token=None,
    refresh_token=None,
    expires_at=None,
    is_authenticated=False,
    error=None,
)


class AuthStore(Store[AuthState]):
    """Authenticated user, bearer tokens and permission checks.

    Every change of the token pair is written through to ``session_repo`` so
    a later process can :meth:`restore` the session.
    """

    def __init__(
        self,
        service: AuthService,
        session_repo: Optional[SessionRepo] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(AuthState())
        self._service = service
        self._repo = session_repo
        self._clock = clock

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def login(self, username: str, password: str, remember_me: bool = False) -> bool:
        self.set_state(is_loading=True, error=None)
        try:
            session = self._service.login(username, password, remember_me)
        except AppError as exc:
            message = error_message(exc, "Login failed")
            logger.error("Login failed: %s", message, extra={"username": username})
            self.set_state(is_loading=False, error=message)
            return False

        self.set_state(
            user=session.user,
            token=session.token,
            refresh_token=session.refresh_token,
            expires_at=self._expires_at(session.expires_in),
            is_authenticated=True,
            is_loading=False,
            error=None,
        )
        self._service.set_auth_token(session.token)
        self._persist()
        logger.info("Login successful", extra={"username": username})
        return True

    def logout(self) -> None:
        try:
            if self.state.token:
                self._service.logout()
        except AppError as exc:
            logger.error("Logout error: %s", exc)
        finally:
            self.set_state(**_LOGGED_OUT)
            self._service.clear_auth_token()
            if self._repo is not None:
                self._repo.clear()

    def refresh_auth_token(self) -> bool:
        refresh_token = self.state.refresh_token
        if not refresh_token:
            return False
        try:
            tokens = self._service.refresh(refresh_token)
        except AppError as exc:
            logger.error("Token refresh failed: %s", exc)
            self.logout()
            return False
        self._apply_tokens(tokens)
        return True

    def ensure_fresh_token(self, margin_seconds: float = 60.0) -> bool:
        """Refresh the token when it expires within ``margin_seconds``.

        Returns False only when a needed refresh failed.
        """
        expires_at = self.state.expires_at
        if not self.state.token or expires_at is None:
            return True
        if expires_at - self._clock() > margin_seconds:
            return True
        logger.info("Access token about to expire, refreshing")
        return self.refresh_auth_token()

    def check_session(self) -> bool:
        if not self.state.token:
            self.set_state(is_authenticated=False)
            return False
        if self._service.validate_token():
            self.set_state(is_authenticated=True)
            return True
        if self.state.refresh_token:
            return self.refresh_auth_token()
        self.logout()
        return False

    def restore(self) -> bool:
        """Load the persisted session and hand its token to the API client."""
        if self._repo is None:
            return False
        stored = self._repo.load()
        if stored is None:
            return False
        user: Optional[User] = None
        if stored.user_json:
            try:
                user = User.model_validate_json(stored.user_json)
            except SchemaError:
                logger.warning("Discarding unreadable stored user profile")
        self.set_state(
            user=user,
            token=stored.token,
            refresh_token=stored.refresh_token,
            expires_at=stored.expires_at,
            is_authenticated=True,
        )
        self._service.set_auth_token(stored.token)
        return True

    def handle_unauthorized(self) -> bool:
        """API client hook for 401 responses: try one token refresh."""
        if not self.state.refresh_token:
            return False
        return self.refresh_auth_token()

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------
    def change_password(self, current: str, new: str, confirm: str) -> bool:
        self.set_state(is_loading=True, error=None)
        try:
            self._service.change_password(current, new, confirm)
        except AppError as exc:
            message = error_message(exc, "Password change failed")
            logger.error("Password change failed: %s", message)
            self.set_state(is_loading=False, error=message)
            return False
        self.set_state(is_loading=False)
        return True

    def update_profile(self, changes: Mapping[str, Any]) -> bool:
        self.set_state(is_loading=True, error=None)
        try:
            user = self._service.update_profile(changes)
        except AppError as exc:
            message = error_message(exc, "Profile update failed")
            logger.error("Profile update failed: %s", message)
            self.set_state(is_loading=False, error=message)
            return False
        self.set_state(user=user, is_loading=False)
        self._persist()
        return True

    def fetch_user_profile(self) -> None:
        try:
            user = self._service.get_profile()
        except AppError as exc:
            logger.error("Failed to fetch user profile: %s", exc)
            return
        self.set_state(user=user)
        self._persist()

    def clear_error(self) -> None:
        self.set_state(error=None)

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------
    def has_permission(self, resource: str, action: str) -> bool:
        user = self.state.user
        if user is None:
            return False
        return any(p.allows(resource, action) for p in user.all_permissions())

    def has_role(self, name: str) -> bool:
        user = self.state.user
        if user is None:
            return False
        return any(role.name == name for role in user.roles)

    def can_access(self, resource: str, action: str) -> bool:
        return self.has_permission(resource, action)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _expires_at(self, expires_in: Optional[int]) -> Optional[float]:
        if not expires_in:
            return None
        return self._clock() + float(expires_in)

    def _apply_tokens(self, tokens: AuthTokens) -> None:
        self.set_state(
            token=tokens.token,
            refresh_token=tokens.refresh_token or self.state.refresh_token,
            expires_at=self._expires_at(tokens.expires_in),
            error=None,
        )
        self._service.set_auth_token(tokens.token)
        self._persist()

    def _persist(self) -> None:
        if self._repo is None or not self.state.token:
            return
        user = self.state.user
        self._repo.save(
            StoredSession(
                token=self.state.token,
                refresh_token=self.state.refresh_token,
                expires_at=self.state.expires_at,
                user_json=user.model_dump_json(by_alias=True) if user else None,
            )
        )
