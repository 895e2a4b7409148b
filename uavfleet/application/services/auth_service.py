from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from uavfleet.application.services._payloads import (
    ClientProto,
    default_client,
    parse_model,
    to_api_payload,
)
from uavfleet.domain.entities import AuthSession, AuthTokens, User
from uavfleet.infrastructure.errors import AppError, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    """Login, token refresh and profile calls against ``/api/auth``."""

    base_path = "/api/auth"

    def __init__(self, client: Optional[ClientProto] = None) -> None:
        self._client = default_client(client)

    @property
    def client(self) -> ClientProto:
        return self._client

    def login(self, username: str, password: str, remember_me: bool = False) -> AuthSession:
        payload = self._client.post(
            f"{self.base_path}/login",
            {"username": username, "password": password, "rememberMe": remember_me},
        )
        return parse_model(AuthSession, payload)

    def logout(self) -> None:
        self._client.post(f"{self.base_path}/logout")

    def refresh(self, refresh_token: str) -> AuthTokens:
        payload = self._client.post(f"{self.base_path}/refresh", {"refreshToken": refresh_token})
        return parse_model(AuthTokens, payload)

    def validate_token(self) -> bool:
        try:
            self._client.get(f"{self.base_path}/validate")
        except AppError as exc:
            logger.debug("Token validation failed: %s", exc)
            return False
        return True

    def get_profile(self) -> User:
        return parse_model(User, self._client.get(f"{self.base_path}/profile"))

    def update_profile(self, changes: Mapping[str, Any]) -> User:
        payload = self._client.put(f"{self.base_path}/profile", to_api_payload(changes))
        return parse_model(User, payload)

    def change_password(self, current: str, new: str, confirm: str) -> None:
        if new != confirm:
            raise ValidationError("New password and confirmation do not match")
        self._client.post(
            f"{self.base_path}/change-password",
            {"currentPassword": current, "newPassword": new, "confirmPassword": confirm},
        )

    def set_auth_token(self, token: str) -> None:
        setter = getattr(self._client, "set_auth_token", None)
        if setter is not None:
            setter(token)

    def clear_auth_token(self) -> None:
        clearer = getattr(self._client, "clear_auth_token", None)
        if clearer is not None:
            clearer()
