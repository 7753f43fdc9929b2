"""
Webhook Signature Validation
Validates HMAC signatures on tenant-settings-changed webhooks
"""
import hmac
import hashlib
from typing import Optional

import structlog

from .exceptions import InvalidWebhookSignatureError

logger = structlog.get_logger(__name__)


def compute_signature(secret: str, body: bytes) -> str:
    """HMAC-SHA256 hex digest of the raw request body"""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Verify a webhook HMAC signature

    Args:
        body: Raw request body bytes
        signature: Value of the signature header (hex digest)
        secret: Shared secret; when unset, signatures are not checked

    Returns:
        True if signature is valid or no secret is configured

    Raises:
        InvalidWebhookSignatureError: signature missing or wrong
    """
    if not secret:
        logger.warning("webhook_secret_not_configured")
        return True

    if not signature:
        raise InvalidWebhookSignatureError("Missing webhook signature")

    expected_signature = compute_signature(secret, body)

    # Constant-time comparison over bytes; compare_digest rejects non-ASCII str
    received = signature.strip().lower().encode("utf-8")
    if not hmac.compare_digest(received, expected_signature.encode("ascii")):
        logger.error(
            "webhook_signature_invalid",
            expected_prefix=expected_signature[:8],
            got_prefix=signature[:8],
        )
        raise InvalidWebhookSignatureError()

    logger.debug("webhook_signature_verified")
    return True
