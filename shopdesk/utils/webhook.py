"""Fire-and-forget webhook notifications for account request events"""
import hashlib
import hmac
import json
import threading
from datetime import datetime
from typing import Any, Dict

import requests

from shopdesk.config import settings
from shopdesk.utils.logger import logger


def _deliver(url: str, body: bytes, headers: Dict[str, str]) -> None:
    """Deliver webhook payload in a daemon background thread (fire-and-forget)."""
    try:
        resp = requests.post(url, data=body, headers=headers, timeout=5)
        logger.debug(
            "Webhook delivered",
            extra={"url": url, "status": resp.status_code},
        )
    except requests.RequestException as exc:
        logger.warning(
            "Webhook delivery failed",
            extra={"url": url, "error": str(exc)},
        )


def _slack_body(event_type: str, payload: Dict[str, Any]) -> bytes:
    """Format an account request event as a Slack incoming-webhook message."""
    username = payload.get("username", "unknown")
    center = payload.get("center_name") or payload.get("center_id") or "unknown center"
    ts = datetime.utcnow().strftime("%Y-%m-%d %H:%M UTC")

    if event_type == "account_request.submitted":
        text = (
            f"*ShopDesk: Account Request* :hourglass_flowing_sand:\n"
            f"*{username}* asked for an admin account at *{center}*."
        )
        color = "#F59E0B"
    elif event_type == "account_request.approved":
        text = (
            f"*ShopDesk: Account Approved* :white_check_mark:\n"
            f"*{username}* can now sign in (center `{payload.get('center_id')}`)."
        )
        color = "#10B981"
    else:  # account_request.rejected
        text = (
            f"*ShopDesk: Account Rejected* :x:\n"
            f"The request from *{username}* was rejected."
        )
        color = "#EF4444"

    slack_payload = {
        "attachments": [{
            "color": color,
            "text": text,
            "footer": f"ShopDesk | {ts}",
        }]
    }
    return json.dumps(slack_payload).encode()


def send_webhook(event_type: str, payload: Dict[str, Any]) -> None:
    """
    Send a webhook notification for an account request event (non-blocking).

    Supported event types:
      - ``account_request.submitted`` : a new request awaits super-admin review
      - ``account_request.approved`` : an account was created from a request
      - ``account_request.rejected`` : a request was closed without an account

    Configuration (.env):
      - ``WEBHOOK_URL``   : destination URL; Slack incoming webhooks are auto-detected
      - ``WEBHOOK_SECRET`` : if set, adds ``X-ShopDesk-Signature: sha256=<hex>``

    Payloads never contain password hashes. The call returns immediately;
    delivery happens in a daemon thread.
    """
    url = settings.WEBHOOK_URL
    if not url:
        return

    if "hooks.slack.com" in url:
        body = _slack_body(event_type, payload)
        headers: Dict[str, str] = {"Content-Type": "application/json"}
    else:
        body_dict: Dict[str, Any] = {
            "event": event_type,
            "timestamp": datetime.utcnow().isoformat() + "Z",
            **payload,
        }
        body = json.dumps(body_dict, default=str).encode()
        headers = {"Content-Type": "application/json"}

        if settings.WEBHOOK_SECRET:
            sig = hmac.new(
                settings.WEBHOOK_SECRET.encode(), body, hashlib.sha256
            ).hexdigest()
            headers["X-ShopDesk-Signature"] = f"sha256={sig}"

    threading.Thread(target=_deliver, args=(url, body, headers), daemon=True).start()
