"""
Operator alerts
"""

import logging
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


def send_slack_alert(webhook: Optional[str], message: str, fields: Optional[Dict[str, str]] = None) -> bool:
    """
    Post an alert to a Slack webhook

    Failures are logged and reported through the return value so that an
    alert never hides the error that triggered it.
    """
    logger.error(f"ALERT: {message}")
    if not webhook:
        return False

    payload = {
        "text": f"Post-deploy alert: {message}",
        "attachments": [
            {
                "fields": [
                    {"title": title, "value": value, "short": True}
                    for title, value in (fields or {}).items()
                ]
            }
        ]
    }

    try:
        response = requests.post(webhook, json=payload, timeout=10)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"Failed to send Slack alert: {e}")
        return False
    return True
