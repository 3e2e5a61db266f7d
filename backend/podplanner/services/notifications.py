"""Outbound email: transport plus the handful of messages the app sends.

Delivery is best effort. ``send_email`` never raises; it logs the failure
and returns False. Routers schedule these functions as background tasks
after the data change has been committed.
"""
import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, Literal, Optional
from urllib.parse import urlencode

from podplanner.config import settings
from podplanner.errors import DeliveryFailure

logger = logging.getLogger(__name__)

ActivityType = Literal["new_episode", "topic_assigned", "schedule_change"]

ACTIVITY_SUBJECTS = {
    "new_episode": "New Episode Planned - {group}",
    "topic_assigned": "New Topic Assignment - {group}",
    "schedule_change": "Schedule Update - {group}",
}


def app_link(path: str, **params: str) -> str:
    base = settings.APP_BASE_URL.rstrip("/")
    query = urlencode(params)
    return f"{base}{path}?{query}" if query else f"{base}{path}"


def _build_message(to: str, subject: str, text_body: str, html_body: Optional[str]) -> MIMEMultipart:
    from_addr = (settings.SMTP_FROM or settings.SMTP_USERNAME or "").strip()
    msg = MIMEMultipart("alternative")
    msg["From"] = from_addr
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(text_body or "", "plain", "utf-8"))
    if html_body:
        msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def _deliver(to: str, subject: str, text_body: str, html_body: Optional[str] = None) -> None:
    """Hand one message to the configured transport or raise DeliveryFailure."""
    if settings.EMAIL_TRANSPORT == "dummy":
        # Bodies carry single-use links; only the envelope is logged.
        logger.info("Dummy email transport: to=%s subject=%r (%d chars)", to, subject, len(text_body or ""))
        return

    msg = _build_message(to, subject, text_body, html_body)
    timeout = settings.SMTP_TIMEOUT
    try:
        if settings.SMTP_USE_SSL:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, context=context, timeout=timeout) as s:
                if settings.SMTP_USERNAME:
                    s.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
                s.sendmail(msg["From"], [to], msg.as_string())
        else:
            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout) as s:
                s.ehlo()
                if settings.SMTP_USE_TLS:
                    s.starttls(context=ssl.create_default_context())
                    s.ehlo()
                if settings.SMTP_USERNAME:
                    s.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
                s.sendmail(msg["From"], [to], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        raise DeliveryFailure(str(exc)) from exc


def send_email(to: str, subject: str, text_body: str, html_body: Optional[str] = None) -> bool:
    """Send one message; returns whether the relay accepted it."""
    try:
        _deliver(to, subject, text_body, html_body)
    except DeliveryFailure as exc:
        logger.error("Email delivery to %s failed (%s): %s", to, subject, exc)
        return False
    logger.info("Email sent to %s: %s", to, subject)
    return True


def send_password_reset_email(email: str, token: str) -> bool:
    link = app_link("/reset-password", token=token)
    hours = settings.PASSWORD_RESET_TTL_HOURS
    text = (
        "You've requested to reset your password for your PodPlanner account.\n\n"
        f"Set a new password here: {link}\n\n"
        "If you didn't request this, you can ignore this email. "
        f"The link expires in {hours} hour(s) and can only be used once.\n"
    )
    body = (
        "<h1>Reset Your Password</h1>"
        "<p>You've requested to reset your password for your PodPlanner account.</p>"
        f'<p><a href="{html.escape(link)}">Reset Password</a></p>'
        f"<p>The link expires in {hours} hour(s) and can only be used once.</p>"
    )
    return send_email(email, "Reset Your PodPlanner Password", text, body)


def send_group_invitation_email(email: str, group_name: str, inviter_name: str, token: str) -> bool:
    link = app_link("/join-group", token=token)
    days = settings.INVITATION_TTL_DAYS
    text = (
        f'{inviter_name} has invited you to join the podcast planning group "{group_name}" on PodPlanner.\n\n'
        f"Join here: {link}\n\n"
        f"This invitation expires in {days} days.\n"
    )
    body = (
        f"<h1>You're Invited to Join {html.escape(group_name)}</h1>"
        f"<p>{html.escape(inviter_name)} has invited you to join the podcast planning group "
        f'"{html.escape(group_name)}" on PodPlanner.</p>'
        f'<p><a href="{html.escape(link)}">Join Group</a></p>'
        f"<p>This invitation expires in {days} days.</p>"
    )
    return send_email(email, f"Join {group_name} on PodPlanner", text, body)


def send_invite_code_email(email: str, group_name: str, inviter_name: str, code: str) -> bool:
    link = app_link("/join", code=code)
    days = settings.INVITE_CODE_TTL_DAYS
    text = (
        f'{inviter_name} has invited you to join the podcast planning group "{group_name}" on PodPlanner.\n\n'
        f"Your invite code: {code}\n\n"
        f'Open {link} or enter the code after choosing "Join Group" in PodPlanner.\n\n'
        f"This code expires in {days} days and works once.\n"
    )
    body = (
        f"<h1>You're Invited to Join {html.escape(group_name)}</h1>"
        f"<p>{html.escape(inviter_name)} has invited you to join "
        f'"{html.escape(group_name)}" on PodPlanner.</p>'
        f"<p>Your invite code: <code>{html.escape(code)}</code></p>"
        f'<p><a href="{html.escape(link)}">Join Group</a></p>'
        f"<p>This code expires in {days} days and works once.</p>"
    )
    return send_email(email, f"Join {group_name} on PodPlanner", text, body)


def send_group_activity_email(
    recipients: Iterable[str],
    group_name: str,
    activity: ActivityType,
    details: str,
) -> int:
    """Notify group members of a change; returns how many were delivered."""
    subject = ACTIVITY_SUBJECTS[activity].format(group=group_name)
    body = f"<h1>{html.escape(subject)}</h1><p>{html.escape(details)}</p>"
    delivered = 0
    for email in recipients:
        if send_email(email, subject, f"{subject}\n\n{details}\n", body):
            delivered += 1
    return delivered
