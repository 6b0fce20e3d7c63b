"""Telegram Mini App ``initData`` and CryptoBot webhook signature checks.

Both schemes use the same two-stage HMAC-SHA256 construction:

    secret    = HMAC_SHA256(key="WebAppData", msg=token)
    signature = hex(HMAC_SHA256(key=secret, msg=payload))

For initData the payload is the data-check-string (all fields except
``hash``, sorted by key, joined as ``key=value`` lines). For webhooks the
payload is the raw request body exactly as received.

https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable
from urllib.parse import parse_qsl, urlencode

logger = logging.getLogger(__name__)

WEB_APP_DATA_KEY = b"WebAppData"


@dataclass(frozen=True)
class InitDataVerification:
    valid: bool
    user: dict[str, Any] | None = None
    reason: str | None = None

    @property
    def telegram_id(self) -> int | None:
        if not self.valid or not self.user:
            return None
        user_id = self.user.get("id")
        return user_id if isinstance(user_id, int) and not isinstance(user_id, bool) else None


def _secret_key(token: str) -> bytes:
    return hmac.new(WEB_APP_DATA_KEY, token.encode("utf-8"), hashlib.sha256).digest()


def _sign(token: str, payload: bytes) -> str:
    return hmac.new(_secret_key(token), payload, hashlib.sha256).hexdigest()


def build_data_check_string(pairs: Iterable[tuple[str, str]]) -> str:
    """Sort pairs by key and join them as ``key=value`` lines, skipping ``hash``."""
    items = [(k, v) for k, v in pairs if k != "hash"]
    items.sort(key=lambda kv: kv[0])
    return "\n".join(f"{k}={v}" for k, v in items)


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """Return a URL-encoded initData string with a valid ``hash`` appended."""
    data_check_string = build_data_check_string(fields.items())
    digest = _sign(bot_token, data_check_string.encode("utf-8"))
    return urlencode([*fields.items(), ("hash", digest)])


def verify_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int = 0,
) -> InitDataVerification:
    """Check that ``init_data`` was signed by Telegram for ``bot_token``.

    Never raises: every failure resolves to ``valid=False`` with a reason.
    """
    try:
        if not init_data or not bot_token:
            return InitDataVerification(False, reason="empty")

        pairs = parse_qsl(init_data, keep_blank_values=True)
        received_hash = next((v for k, v in pairs if k == "hash"), None)
        if not received_hash:
            return InitDataVerification(False, reason="no hash")

        data_check_string = build_data_check_string(pairs)
        computed_hash = _sign(bot_token, data_check_string.encode("utf-8"))
        if not hmac.compare_digest(computed_hash, received_hash):
            return InitDataVerification(False, reason="hash mismatch")

        fields = dict(pairs)
        if max_age_seconds > 0:
            auth_date = int(fields.get("auth_date", "0"))
            if time.time() - auth_date > max_age_seconds:
                return InitDataVerification(False, reason="expired")

        user_raw = fields.get("user")
        if not user_raw:
            return InitDataVerification(False, reason="no user")
        user = json.loads(user_raw)
        if not isinstance(user, dict):
            return InitDataVerification(False, reason="user is not an object")

        return InitDataVerification(True, user=user)
    except (ValueError, TypeError, UnicodeError) as exc:
        logger.warning("initData verification error: %s", exc)
        return InitDataVerification(False, reason=str(exc))


def sign_webhook_body(raw_body: bytes | str, provider_token: str) -> str:
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    return _sign(provider_token, raw_body)


def verify_webhook_signature(raw_body: bytes | str, signature: str, provider_token: str) -> bool:
    """Check a CryptoBot ``crypto-pay-api-signature`` header.

    ``raw_body`` must be the bytes received on the wire. Re-serialized JSON
    will not match.
    """
    if not signature or not provider_token:
        return False
    try:
        expected = sign_webhook_body(raw_body, provider_token)
        return hmac.compare_digest(expected, signature)
    except (TypeError, UnicodeError) as exc:
        logger.warning("Webhook signature verification error: %s", exc)
        return False
