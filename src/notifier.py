import requests

import config
from errors import NotificationError

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def build_body(message: str, banner: str | None = None) -> str:
    banner = config.MESSAGE_BANNER if banner is None else banner
    return f"{banner}\n\n{message}" if banner else message


def send_text(number: str, message: str, banner: str | None = None, timeout: float = 30) -> str:
    """Send an SMS through Twilio and return the message SID."""
    if not number:
        raise NotificationError("recipient phone number is empty")

    try:
        resp = requests.post(
            TWILIO_MESSAGES_URL.format(sid=config.TWILIO_SID),
            auth=(config.TWILIO_SID, config.TWILIO_TKN),
            data={
                "From": config.TWILIO_PHONE,
                "To": number,
                "Body": build_body(message, banner),
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise NotificationError(f"failed to reach Twilio for {number}: {e}") from e

    if not resp.ok:
        raise NotificationError(f"Twilio rejected message to {number}: {resp.status_code} {resp.text}")
    return resp.json().get("sid", "")
