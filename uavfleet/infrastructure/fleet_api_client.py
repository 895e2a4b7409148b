from __future__ import annotations

import logging
import os
import random
import time
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol, cast

import requests

from uavfleet.config.settings import settings, to_websocket_url
from uavfleet.infrastructure.errors import (
    APIError,
    AppError,
    AuthenticationError,
    AuthorizationError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ValidationError,
)


class _HasHeaders(Protocol):
    headers: Mapping[str, str]


logger = logging.getLogger(__name__)
_TRUE_SET = {"1", "true", "yes", "on"}
_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def _env_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUE_SET


_GLOBAL_LOG_RESPONSES = _env_flag(os.getenv("UAV_API_LOG_RESPONSES"))


def set_api_response_logging(enabled: bool) -> None:
    """Globally enable/disable dumping raw API responses to stdout."""

    global _GLOBAL_LOG_RESPONSES
    _GLOBAL_LOG_RESPONSES = bool(enabled)


class FleetAPIClient:
    """REST client for the UAV control-center backend.

    Features:
    - Bearer token auth managed through ``set_auth_token``/``clear_auth_token``.
    - Configurable timeout, retry count and exponential backoff with jitter.
    - Retries on HTTP 429, 5xx, timeouts and connection failures.
    - Typed errors for the remaining 4xx responses.
    - Unwraps ``{"success": ..., "data": ...}`` response envelopes.
    - Optional stdout logging of every API response.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_factor: float = 0.5,
        *,
        token: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        on_unauthorized: Optional[Callable[[], bool]] = None,
        log_responses: bool | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = float(timeout if timeout is not None else settings.timeout)
        self.max_retries = int(max_retries if max_retries is not None else settings.max_retries)
        self.backoff_factor = float(backoff_factor)
        self.on_unauthorized = on_unauthorized
        self._log_responses = (
            _GLOBAL_LOG_RESPONSES if log_responses is None else bool(log_responses)
        )
        self._reauthenticating = False

        self._session = requests.Session()
        default_headers = dict(_DEFAULT_HEADERS)
        if headers:
            default_headers.update(headers)
        self._session.headers.update(default_headers)

        initial_token = token if token is not None else settings.api_token
        if initial_token:
            self.set_auth_token(initial_token)

    # ------------------------------------------------------------------
    # Auth header
    # ------------------------------------------------------------------
    @property
    def auth_token(self) -> Optional[str]:
        header = self._session.headers.get("Authorization")
        if not header or not header.startswith("Bearer "):
            return None
        return header[len("Bearer ") :]

    def set_auth_token(self, token: str) -> None:
        self._session.headers["Authorization"] = f"Bearer {token}"

    def clear_auth_token(self) -> None:
        self._session.headers.pop("Authorization", None)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------
    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Perform a GET request and return the decoded body.

        Retries on 429, 5xx and transport failures with exponential backoff.
        Raises a typed ``AppError`` on persistent failures or non-retriable 4xx.
        """
        return self._request("GET", path, params=params)

    def post(
        self,
        path: str,
        data: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return self._request("POST", path, params=params, body=data)

    def put(
        self,
        path: str,
        data: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return self._request("PUT", path, params=params, body=data)

    def patch(
        self,
        path: str,
        data: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return self._request("PATCH", path, params=params, body=data)

    def delete(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self._request("DELETE", path, params=params)

    def download(self, path: str, params: Optional[Mapping[str, Any]] = None) -> bytes:
        """GET ``path`` and return the raw response bytes."""
        resp = self._send("GET", path, params=params)
        return resp.content

    def health_check(self) -> Any:
        """GET /health convenience method."""
        return self.get("health")

    def get_version(self) -> Any:
        """GET /version convenience method."""
        return self.get("version")

    def websocket_url(self, endpoint: str = "") -> str:
        return to_websocket_url(self.base_url, endpoint)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _full_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        resp = self._send(method, path, params=params, body=body)
        return self._decode(resp)

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> requests.Response:
        url = self._full_url(path)
        attempt = 0
        last_error: Optional[Exception] = None
        last_status: Optional[int] = None
        norm_params = self._normalize_params(params)

        while attempt <= self.max_retries:
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    params=norm_params,
                    json=body,
                    timeout=self.timeout,
                )
                self._log_http_response(method, url, norm_params, resp)

                # Success
                if 200 <= resp.status_code < 300:
                    return resp

                if resp.status_code == 401 and self._can_reauthenticate():
                    return self._retry_after_reauth(method, path, params, body, resp)

                # Rate limited or server error -> retry
                if resp.status_code == 429 or 500 <= resp.status_code < 600:
                    last_status = resp.status_code
                    last_error = None
                    retry_after = self._compute_sleep_seconds(attempt, resp)
                    logger.warning(
                        "FleetAPIClient %s %s failed with %s. Retrying in %.2fs (attempt %d/%d)",
                        method,
                        url,
                        resp.status_code,
                        retry_after,
                        attempt + 1,
                        self.max_retries,
                    )
                    attempt += 1
                    if attempt > self.max_retries:
                        break
                    time.sleep(retry_after)
                    continue

                # Non-retriable client error
                raise _error_for_status(resp)

            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
                last_status = None
                retry_after = self._compute_sleep_seconds(attempt)
                logger.warning(
                    "FleetAPIClient %s %s exception: %s. Retrying in %.2fs (attempt %d/%d)",
                    method,
                    url,
                    type(exc).__name__,
                    retry_after,
                    attempt + 1,
                    self.max_retries,
                )
                attempt += 1
                if attempt > self.max_retries:
                    break
                time.sleep(retry_after)

        # Exceeded retries
        if isinstance(last_error, requests.Timeout):
            raise RequestTimeoutError(
                f"Request to {url} timed out after {self.timeout:g}s"
            ) from last_error
        if last_error is not None:
            raise NetworkError(
                "Network connection failed. Please check your internet connection."
            ) from last_error
        raise APIError(
            f"Request failed after retries (status {last_status})",
            status_code=last_status,
        )

    def _can_reauthenticate(self) -> bool:
        return self.on_unauthorized is not None and not self._reauthenticating

    def _retry_after_reauth(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]],
        body: Any,
        resp: requests.Response,
    ) -> requests.Response:
        reauthenticate = self.on_unauthorized
        if reauthenticate is None:
            raise _error_for_status(resp)
        # The flag stays set for the replay so a second 401 is final
        self._reauthenticating = True
        try:
            if not reauthenticate():
                raise _error_for_status(resp)
            logger.info("FleetAPIClient %s %s replayed after re-authentication", method, path)
            return self._send(method, path, params=params, body=body)
        finally:
            self._reauthenticating = False

    def _decode(self, resp: requests.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None
        if "json" in resp.headers.get("Content-Type", ""):
            try:
                body = resp.json()
            except ValueError as exc:
                raise APIError("Invalid JSON response", status_code=resp.status_code) from exc
            return _unwrap_envelope(body)
        return resp.text

    def _compute_sleep_seconds(self, attempt: int, response: Optional[_HasHeaders] = None) -> float:
        """Compute sleep duration for retries.

        - Respect Retry-After header if provided and valid.
        - Otherwise exponential backoff: backoff_factor * (2**attempt) + jitter.
        """
        if response is not None:
            headers = cast(Mapping[str, str], response.headers)
            ra = headers.get("Retry-After")
            if ra:
                try:
                    # Retry-After in seconds (integer)
                    return max(0.0, float(int(ra)))
                except (TypeError, ValueError):
                    pass

        base: float = float(self.backoff_factor) * float(2**attempt)
        jitter: float = float(random.uniform(0.0, 0.1))
        return float(base + jitter)

    def _normalize_params(self, params: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
        if params is None:
            return None
        out: dict[str, Any] = {}
        for k, v in params.items():
            if v is None:
                continue
            key = str(k)
            if isinstance(v, bool):
                out[key] = "true" if v else "false"
            elif isinstance(v, (int, float)):
                out[key] = str(v)
            elif isinstance(v, (list, tuple)):
                out[key] = [_param_str(item) for item in v]
            else:
                out[key] = v
        return out

    def _log_http_response(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]],
        resp: requests.Response,
    ) -> None:
        if not self._log_responses:
            return
        ts = datetime.now().isoformat(timespec="seconds")
        prefix = f"[API RESPONSE] {ts} {method} {url} status={resp.status_code}"
        if params:
            prefix = f"{prefix} params={dict(params)}"
        print(prefix, flush=True)
        print(resp.text, flush=True)


def _param_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _unwrap_envelope(payload: Any) -> Any:
    if not isinstance(payload, Mapping) or "success" not in payload:
        return payload
    if not payload.get("success"):
        message = payload.get("message") or payload.get("error") or "Request failed"
        code = payload.get("code")
        raise APIError(str(message), code=str(code) if code else None, details=payload)
    if "data" in payload:
        return payload["data"]
    return payload


def _response_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _response_message(resp: requests.Response, body: Any) -> str:
    if isinstance(body, Mapping):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    text = (resp.text or "").strip()
    return text[:200] if text else f"HTTP {resp.status_code}"


def _error_for_status(resp: requests.Response) -> AppError:
    status = resp.status_code
    body = _response_body(resp)
    message = _response_message(resp, body)
    if status in (400, 422) and isinstance(body, Mapping) and body.get("success") is False:
        # Business-rule rejections (pod full, duplicate RFID) keep the envelope code
        code = body.get("code")
        return APIError(
            message, status_code=status, code=str(code) if code else None, details=body
        )
    if status in (400, 422):
        return ValidationError(message, status_code=status)
    if status == 401:
        return AuthenticationError(message, status_code=status)
    if status == 403:
        return AuthorizationError(message, status_code=status)
    if status == 404:
        return NotFoundError(message, status_code=status)
    return APIError(f"API error {status}: {message}", status_code=status)
