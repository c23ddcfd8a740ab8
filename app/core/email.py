import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import logging

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


async def send_email(
    to_email: str,
    subject: str,
    body: str,
    is_html: bool = False
) -> bool:
    """
    Send an email asynchronously.

    Args:
        to_email: Recipient email address
        subject: Email subject
        body: Email body content
        is_html: Whether the body is HTML format

    Returns:
        True if email sent successfully, False otherwise
    """
    if not settings.MAIL_SERVER:
        logger.warning("Mail server not configured; skipping email to %s (%s)", to_email, subject)
        return False
    try:
        message = MIMEMultipart("alternative")
        message["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM}>"
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(body, "html" if is_html else "plain"))

        # Port 465 uses SSL/TLS, port 587 uses STARTTLS
        if settings.MAIL_PORT == 465:
            context = ssl.create_default_context()
            await aiosmtplib.send(
                message,
                hostname=settings.MAIL_SERVER,
                port=settings.MAIL_PORT,
                username=settings.MAIL_USERNAME,
                password=settings.MAIL_PASSWORD,
                use_tls=True,
                tls_context=context,
            )
        else:
            await aiosmtplib.send(
                message,
                hostname=settings.MAIL_SERVER,
                port=settings.MAIL_PORT,
                username=settings.MAIL_USERNAME,
                password=settings.MAIL_PASSWORD,
                start_tls=True,
            )

        logger.info(f"Email sent successfully to {to_email}")
        return True

    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
        return False


async def send_customer_welcome_email(
    customer_email: str,
    customer_name: str,
    password: str
) -> bool:
    """Send login credentials to a customer created by an admin."""
    subject = "Welcome - Your Account Credentials"

    html_body = f"""
<html>
  <body>
    <h2>Welcome!</h2>
    <p>Dear {customer_name},</p>
    <p>Your membership account has been successfully created.</p>
    <p><strong>Your login credentials are:</strong></p>
    <ul>
      <li><strong>Email:</strong> {customer_email}</li>
      <li><strong>Password:</strong> {password}</li>
    </ul>
    <p><em>Please keep this password secure and change it after your first login.</em></p>
    <p>Best regards,<br>The Back Office Team</p>
  </body>
</html>
"""

    return await send_email(
        to_email=customer_email,
        subject=subject,
        body=html_body,
        is_html=True
    )


async def send_loan_approval_email(
    borrower_email: str,
    borrower_name: str,
    principal_amount: float,
    interest_amount: float,
    processing_fee: float,
    total_loan_amount: float,
    monthly_installment: float,
    duration_months: int,
) -> bool:
    """Send loan approval notice with the frozen loan terms."""
    subject = "Loan Approval - Terms and Conditions"

    html_body = f"""
<html>
  <body>
    <h2>Your loan has been approved</h2>
    <p>Dear {borrower_name},</p>
    <p>We are pleased to inform you that your loan application has been approved on the following terms:</p>
    <ul>
      <li><strong>Principal:</strong> {principal_amount:,.2f}</li>
      <li><strong>Interest:</strong> {interest_amount:,.2f}</li>
      <li><strong>Processing fee:</strong> {processing_fee:,.2f}</li>
      <li><strong>Total repayment:</strong> {total_loan_amount:,.2f}</li>
      <li><strong>Monthly installment:</strong> {monthly_installment:,.2f} over {duration_months} months</li>
    </ul>
    <p>The processing fee must be paid before the loan becomes active.</p>
    <p>Best regards,<br>The Back Office Team</p>
  </body>
</html>
"""
    return await send_email(
        to_email=borrower_email,
        subject=subject,
        body=html_body,
        is_html=True,
    )


async def send_first_bid_email(
    owner_email: str,
    owner_name: str,
    auction_name: str,
    amount: float,
) -> bool:
    """Tell an auction owner that the auction received its first bid."""
    subject = f"Your auction \"{auction_name}\" received its first bid"
    html_body = f"""
<html>
  <body>
    <p>Dear {owner_name},</p>
    <p>Your auction <strong>{auction_name}</strong> has received its first bid of <strong>{amount:,.2f}</strong>.</p>
    <p>Best regards,<br>The Back Office Team</p>
  </body>
</html>
"""
    return await send_email(
        to_email=owner_email,
        subject=subject,
        body=html_body,
        is_html=True,
    )
