"""
Gateway HTTP client: private-key auth, locale header and gateway error parsing.
"""
from __future__ import annotations

import base64
from typing import Optional

import httpx

from core.config import PaygateSettings, settings as default_settings
from domain.common.exceptions import GatewayApiException
from infrastructure.external.api_clients.base import APIResponse, BaseAPIClient


class PaygateHttpClient(BaseAPIClient):
    """Async client for the gateway REST API (``<url>/<api_version>/...``)."""

    def __init__(
        self,
        key: str,
        *,
        locale: Optional[str] = None,
        mode: Optional[str] = None,
        settings: Optional[PaygateSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        cfg = settings or default_settings
        timeouts = cfg.timeouts
        super().__init__(
            base_url=cfg.base_url(mode),
            timeout=httpx.Timeout(
                connect=timeouts.connect,
                read=timeouts.read,
                write=timeouts.write,
                timeout=timeouts.total,
            ),
            max_retries=cfg.retry.max,
            retry_delay=cfg.retry.base_backoff,
            headers={
                "User-Agent": f"PaygatePython/{cfg.SDK_VERSION}",
                "SDK-VERSION": cfg.SDK_VERSION,
                "SDK-TYPE": "PaygatePython",
                "Accept-Language": locale or cfg.LOCALE,
            },
            debug=cfg.DEBUG,
            transport=transport,
        )
        self.set_key(key)

    def set_key(self, key: str) -> None:
        # Basic auth: private key as user name, empty password
        token = base64.b64encode(f"{key}:".encode("utf-8")).decode("ascii")
        self.set_auth_token(token, prefix="Basic")

    def set_locale(self, locale: str) -> None:
        self.default_headers["Accept-Language"] = locale

    def _handle_error_response(self, response: APIResponse):
        data = response.data if isinstance(response.data, dict) else {}
        errors = data.get("errors") or []
        error = errors[0] if errors and isinstance(errors[0], dict) else {}
        merchant_message = (
            error.get("merchantMessage")
            or data.get("message")
            or f"API request failed with status {response.status_code}"
        )
        raise GatewayApiException(
            merchant_message,
            error.get("customerMessage"),
            error.get("code"),
            status_code=response.status_code,
            error_id=data.get("id") or response.request_id,
        )
