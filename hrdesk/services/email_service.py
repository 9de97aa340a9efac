"""
Outgoing mail for the leave workflow.

With ``SMTP_ENABLED`` off (the default) messages are only written to the
log, which is how development and test environments run. Errors from the
SMTP server propagate; callers decide whether a failed notification matters.
"""

import asyncio
import logging
import smtplib
from datetime import date
from email.message import EmailMessage

from hrdesk.core.config import settings

logger = logging.getLogger(__name__)


def _fmt(d: date) -> str:
    return d.strftime("%B %d, %Y")


def _deliver(message: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
        server.send_message(message)


async def send_email(to_email: str, subject: str, body: str) -> None:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.MAIL_FROM
    message["To"] = to_email
    message.set_content(body)

    if not settings.SMTP_ENABLED:
        logger.info("EMAIL (not sent, SMTP disabled) to=%s subject=%r\n%s", to_email, subject, body)
        return

    await asyncio.to_thread(_deliver, message)
    logger.info("Email sent to %s: %s", to_email, subject)


def email_action_url(leave_request_id: int, token: str, approve: bool) -> str:
    flag = "true" if approve else "false"
    return (
        f"{settings.APP_BASE_URL.rstrip('/')}/api/leave/{leave_request_id}"
        f"/email-action?approve={flag}&token={token}"
    )


async def send_leave_request_for_approval(
    approver_email: str,
    employee_name: str,
    start_date: date,
    end_date: date,
    leave_request_id: int,
    action_token: str,
) -> None:
    body = (
        "Dear Admin,\n\n"
        f"{employee_name} has requested leave from {_fmt(start_date)} to {_fmt(end_date)}.\n\n"
        "Please review and take action:\n\n"
        f"APPROVE: {email_action_url(leave_request_id, action_token, True)}\n\n"
        f"REJECT: {email_action_url(leave_request_id, action_token, False)}\n\n"
        "These links stop working once the request is processed.\n\n"
        "Regards,\nHR Management System\n"
    )
    await send_email(approver_email, "Leave Request Approval Needed", body)


async def send_leave_approved(
    employee_email: str, employee_name: str, start_date: date, end_date: date
) -> None:
    body = (
        f"Dear {employee_name},\n\n"
        "Your leave request has been APPROVED.\n\n"
        f"- From: {_fmt(start_date)}\n"
        f"- To: {_fmt(end_date)}\n\n"
        "Enjoy your time off!\n\n"
        "Regards,\nHR Management System\n"
    )
    await send_email(employee_email, "Your Leave Request Has Been Approved", body)


async def send_leave_rejected(
    employee_email: str,
    employee_name: str,
    start_date: date,
    end_date: date,
    reason: str,
) -> None:
    body = (
        f"Dear {employee_name},\n\n"
        "Unfortunately, your leave request has been REJECTED.\n\n"
        f"- From: {_fmt(start_date)}\n"
        f"- To: {_fmt(end_date)}\n"
        f"- Reason: {reason}\n\n"
        "Please contact HR if you have any questions.\n\n"
        "Regards,\nHR Management System\n"
    )
    await send_email(employee_email, "Your Leave Request Has Been Rejected", body)
