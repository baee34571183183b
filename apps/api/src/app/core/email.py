"""
Email Service using Resend

Templated emails for the fellowship application lifecycle. Every send
function returns True on success and False on failure; none of them raise.
"""

import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

EMAIL_FROM = settings.email_from
FRONTEND_URL = settings.frontend_url

_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
        .header {{ color: {accent}; margin-bottom: 24px; }}
        .summary {{ background-color: #f9fafb; border-radius: 8px; padding: 16px 20px; margin: 24px 0; }}
        .button {{ display: inline-block; background-color: {accent}; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
        .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
    </style>
</head>
<body>
    <div class="container">
        <h1 class="header">{title}</h1>
        {body}
        <a href="{dashboard_url}" class="button">View Your Application</a>
        <div class="footer">
            <p>Fellowship Admissions Portal</p>
        </div>
    </div>
</body>
</html>
"""


def _render(title: str, body: str, accent: str = "#1a365d") -> str:
    return _LAYOUT.format(
        title=escape(title),
        body=body,
        accent=accent,
        dashboard_url=f"{FRONTEND_URL}/dashboard",
    )


def _format_date(value: date | datetime | str | None) -> str:
    if value is None:
        return "To be announced"
    if isinstance(value, datetime | date):
        return value.strftime("%B %d, %Y")
    return str(value)


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    When no API key is configured the email is logged instead of sent.

    Returns:
        True if the email was sent (or logged), False on delivery failure
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_application_submitted(
    to_email: str,
    applicant_name: str,
    application_number: str,
) -> bool:
    """Confirm receipt of a submitted application."""
    safe_name = escape(applicant_name)
    safe_number = escape(application_number)

    body = f"""
        <p>Dear {safe_name},</p>
        <p>We have received your fellowship application.</p>
        <div class="summary">
            <p><strong>Application Number:</strong> {safe_number}</p>
        </div>
        <p>Our admissions team will review your application and contact you with a decision.
        You can track its progress from your dashboard at any time.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application Received - {application_number}",
        html_content=_render("Application Received", body),
    )


async def send_application_approved(
    to_email: str,
    applicant_name: str,
    application_number: str,
    cohort_name: str,
    start_date: date | datetime | str | None,
) -> bool:
    """Notify the applicant that their application was approved."""
    safe_name = escape(applicant_name)
    safe_number = escape(application_number)
    safe_cohort = escape(cohort_name)
    safe_start = escape(_format_date(start_date))

    body = f"""
        <p>Dear {safe_name},</p>
        <p>We are delighted to inform you that your fellowship application has been
        <strong>approved</strong>.</p>
        <div class="summary">
            <p><strong>Application Number:</strong> {safe_number}</p>
            <p><strong>Cohort:</strong> {safe_cohort}</p>
            <p><strong>Programme Start Date:</strong> {safe_start}</p>
        </div>
        <p>Further onboarding details will be shared with you ahead of the start date.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="Congratulations! Your Fellowship Application Has Been Approved",
        html_content=_render("Congratulations!", body, accent="#047857"),
    )


async def send_application_declined(
    to_email: str,
    applicant_name: str,
    application_number: str,
    remarks: str | None = None,
) -> bool:
    """Notify the applicant that their application was not successful."""
    safe_name = escape(applicant_name)
    safe_number = escape(application_number)

    remarks_html = ""
    if remarks:
        remarks_html = f"<p><strong>Remarks:</strong> {escape(remarks)}</p>"

    body = f"""
        <p>Dear {safe_name},</p>
        <p>Thank you for your interest in the fellowship programme. After careful review,
        we are unable to offer you admission at this time.</p>
        <div class="summary">
            <p><strong>Application Number:</strong> {safe_number}</p>
            {remarks_html}
        </div>
        <p>You are welcome to apply to a future cohort.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application Status Update - {application_number}",
        html_content=_render("Application Status Update", body, accent="#b91c1c"),
    )


async def send_application_under_review(
    to_email: str,
    applicant_name: str,
    application_number: str,
) -> bool:
    """Notify the applicant that their application is (back) under review."""
    safe_name = escape(applicant_name)
    safe_number = escape(application_number)

    body = f"""
        <p>Dear {safe_name},</p>
        <p>Your fellowship application is currently under review by our admissions team.</p>
        <div class="summary">
            <p><strong>Application Number:</strong> {safe_number}</p>
        </div>
        <p>We will notify you as soon as a decision has been made.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application Under Review - {application_number}",
        html_content=_render("Application Under Review", body),
    )


async def send_payment_confirmation(
    to_email: str,
    applicant_name: str,
    application_number: str,
    amount: Decimal | float | str,
    currency: str,
    reference: str,
) -> bool:
    """Confirm a verified application fee payment."""
    safe_name = escape(applicant_name)
    safe_number = escape(application_number)
    safe_reference = escape(reference)
    safe_amount = escape(f"{currency} {Decimal(str(amount)):,.2f}")

    body = f"""
        <p>Dear {safe_name},</p>
        <p>Your application fee payment has been received and confirmed.</p>
        <div class="summary">
            <p><strong>Application Number:</strong> {safe_number}</p>
            <p><strong>Amount Paid:</strong> {safe_amount}</p>
            <p><strong>Payment Reference:</strong> {safe_reference}</p>
        </div>
        <p>Please keep this email for your records.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Payment Confirmed - {application_number}",
        html_content=_render("Payment Confirmed", body, accent="#047857"),
    )
