"""Security alert e-mails for pads that registered an alert address.

Alerts are best effort: they are scheduled as background tasks after the
response, and a missing SMTP configuration or a send failure is only logged.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

from fastapi import BackgroundTasks, Request
from starlette.background import BackgroundTask
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import ValidationError

from securepad.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertEvent:
    subject: str
    title: str
    message: str


EVENTS = {
    "note_accessed": AlertEvent(
        "Your SecureNote was accessed",
        "Note Access Alert",
        "Someone successfully accessed your note.",
    ),
    "login_failed": AlertEvent(
        "Failed login attempt on your SecureNote",
        "Failed Login Attempt",
        "Someone tried to access your note with an incorrect password.",
    ),
    "file_uploaded": AlertEvent(
        "File uploaded to your SecureNote",
        "File Upload",
        "A file was uploaded to your note.",
    ),
    "file_downloaded": AlertEvent(
        "File downloaded from your SecureNote",
        "File Download",
        "A file was downloaded from your note.",
    ),
    "file_deleted": AlertEvent(
        "File deleted from your SecureNote",
        "File Deletion",
        "A file was deleted from your note.",
    ),
}

GENERIC_EVENT = AlertEvent(
    "SecureNote Activity Alert",
    "Activity Alert",
    "Activity detected on your note.",
)


def render_alert(event_type: str, pad_id: str, details: dict, app_url: str) -> tuple[str, str]:
    """Return (subject, html body) for an alert."""
    event = EVENTS.get(event_type, GENERIC_EVENT)
    rows = [f"<p><strong>Time:</strong> {datetime.now(timezone.utc):%Y-%m-%d %H:%M:%S} UTC</p>"]
    if details.get("ip"):
        rows.append(f"<p><strong>IP Address:</strong> {escape(details['ip'])}</p>")
    if details.get("user_agent"):
        rows.append(f"<p><strong>Browser:</strong> {escape(details['user_agent'][:100])}</p>")
    if details.get("file_name"):
        rows.append(f"<p><strong>File:</strong> {escape(details['file_name'])}</p>")

    pad = escape(pad_id)
    html = f"""<!DOCTYPE html>
<html>
<body style="font-family: sans-serif; background: #f7fafc;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1>{event.title}</h1>
    <p>{event.message}</p>
    <p><strong>Note ID:</strong> {pad}</p>
    {''.join(rows)}
    <p>If this wasn't you, please verify your note's security.</p>
    <a href="{escape(app_url)}/pad/{pad}">View Your Note</a>
    <p style="color: #6c757d; font-size: 12px;">
      This is an automated security alert. You received this because you
      enabled alerts for note: {pad}
    </p>
  </div>
</body>
</html>"""
    return event.subject, html


class AlertService:
    """Sends alert e-mails through fastapi-mail; a no-op when SMTP is not configured."""

    def __init__(self, mailer: FastMail | None = None, app_url: str = ""):
        self.mailer = mailer
        self.app_url = app_url

    @property
    def enabled(self) -> bool:
        return self.mailer is not None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AlertService":
        if not (settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASSWORD):
            logger.info("Email alerts disabled - SMTP configuration missing")
            return cls(None, settings.APP_URL)
        try:
            conf = ConnectionConfig(
                MAIL_USERNAME=settings.SMTP_USER,
                MAIL_PASSWORD=settings.SMTP_PASSWORD,
                MAIL_FROM=settings.SMTP_USER,
                MAIL_FROM_NAME="SecureNote Alerts",
                MAIL_PORT=settings.SMTP_PORT,
                MAIL_SERVER=settings.SMTP_HOST,
                MAIL_STARTTLS=settings.SMTP_STARTTLS,
                MAIL_SSL_TLS=settings.SMTP_SSL,
                USE_CREDENTIALS=True,
            )
        except ValidationError as e:
            logger.error(f"Email alerts disabled - invalid SMTP configuration: {e}")
            return cls(None, settings.APP_URL)
        logger.info(f"Email alert service initialized ({settings.SMTP_HOST}:{settings.SMTP_PORT})")
        return cls(FastMail(conf), settings.APP_URL)

    async def send(self, email: str | None, pad_id: str, event_type: str, details: dict | None = None) -> bool:
        """Send one alert. Returns True if it went out."""
        if not self.enabled or not email:
            return False
        subject, html = render_alert(event_type, pad_id, details or {}, self.app_url)
        try:
            message = MessageSchema(
                subject=subject,
                recipients=[email],
                body=html,
                subtype=MessageType.html,
            )
            await self.mailer.send_message(message)
        except Exception as e:
            logger.error(f"Alert email for pad {pad_id} ({event_type}) failed: {e}")
            return False
        logger.info(f"Alert email sent for pad {pad_id} ({event_type})")
        return True


def schedule_alert(
    background: BackgroundTasks,
    alerts: AlertService,
    request: Request,
    pad,
    event_type: str,
    **details,
) -> None:
    """Queue an alert for after the response if the pad asked for alerts."""
    if not alerts.enabled or not pad.alert_email:
        return
    details = {**_request_details(request), **details}
    background.add_task(alerts.send, pad.alert_email, pad.id, event_type, details)


def _request_details(request: Request) -> dict:
    return {
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


def remember_denied(request: Request):
    """on_denied callback for authorize(): marks the request for a login_failed alert.

    The alert cannot ride on the route's BackgroundTasks because a rejected
    request never returns a response from the route; the error handler picks
    it up via denied_alert_task().
    """
    def _remember(pad) -> None:
        request.state.denied_pad = pad
    return _remember


def denied_alert_task(request: Request, alerts: AlertService) -> BackgroundTask | None:
    pad = getattr(request.state, "denied_pad", None)
    if pad is None or not alerts.enabled or not pad.alert_email:
        return None
    return BackgroundTask(alerts.send, pad.alert_email, pad.id, "login_failed", _request_details(request))
