import smtplib
import ssl
from email.message import EmailMessage

from flask import current_app


def _mask_email(email: str) -> str:
    e = (email or '').strip()
    if not e or '@' not in e:
        return ''
    name, domain = e.split('@', 1)
    if len(name) <= 2:
        masked_name = name[:1] + '*'
    else:
        masked_name = name[:1] + ('*' * (len(name) - 2)) + name[-1:]
    return f'{masked_name}@{domain}'


def send_email(*, to_email: str, subject: str, body: str) -> tuple[bool, str | None, str | None]:
    """Send a plain-text email via SMTP.

    Config keys:
      - SMTP_HOST (required)
      - SMTP_PORT (default: 587)
      - SMTP_USERNAME (required)
      - SMTP_PASSWORD (required)
      - SMTP_FROM (default: SMTP_USERNAME)
      - SMTP_USE_TLS (default: true)

    Returns:
      (success, error_message, masked_destination)
    """
    config = current_app.config
    host = (config.get('SMTP_HOST') or '').strip()
    user = (config.get('SMTP_USERNAME') or '').strip()
    password = (config.get('SMTP_PASSWORD') or '').strip()

    if not host or not user or not password:
        return False, 'Email is not configured (SMTP_HOST/SMTP_USERNAME/SMTP_PASSWORD)', None

    try:
        port = int(config.get('SMTP_PORT') or 587)
    except (TypeError, ValueError):
        port = 587

    from_email = (config.get('SMTP_FROM') or user).strip()
    to = (to_email or '').strip()
    if not to:
        return False, 'Recipient email is missing', None

    msg = EmailMessage()
    msg['From'] = from_email
    msg['To'] = to
    msg['Subject'] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host=host, port=port, timeout=20) as server:
            server.ehlo()
            if config.get('SMTP_USE_TLS', True):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            server.login(user, password)
            server.send_message(msg)
        return True, None, _mask_email(to)
    except (smtplib.SMTPException, OSError) as e:
        return False, f'Failed to send email: {e}', _mask_email(to)


def _deliver(kind: str, to_email: str | None, subject: str, body: str) -> bool:
    ok, error, masked = send_email(to_email=to_email or '', subject=subject, body=body)
    if ok:
        current_app.logger.info("Sent %s email to %s", kind, masked)
    elif masked is None:
        current_app.logger.debug("Skipped %s email: %s", kind, error)
    else:
        current_app.logger.warning("Failed %s email to %s: %s", kind, masked, error)
    return ok


def notify_vendor_new_request(refund_request) -> bool:
    """Tell the vendor a customer has asked for a refund."""
    vendor = refund_request.vendor
    customer = refund_request.customer
    order = refund_request.order
    if vendor is None:
        return False

    order_ref = order.order_number if order else refund_request.order_id
    subject = f'New Refund Request - Order #{order_ref}'
    body = (
        f"Hello {vendor.display_name},\n\n"
        f"{customer.name if customer else 'A customer'} has requested a refund of "
        f"{float(refund_request.amount):.2f} for order #{order_ref}.\n\n"
        f"Category: {refund_request.refund_reason_category}\n"
        f"Reason: {refund_request.reason}\n"
        f"Requested: {refund_request.created_at:%B %d, %Y at %I:%M %p}\n"
        f"Request ID: {refund_request.id}\n"
    )
    return _deliver('refund request', vendor.email, subject, body)


def notify_customer_status_change(refund_request) -> bool:
    """Tell the customer their refund request was accepted or rejected."""
    customer = refund_request.customer
    order = refund_request.order
    if customer is None:
        return False

    order_ref = order.order_number if order else refund_request.order_id
    subject = f'Refund Request Update - Order #{order_ref}'
    lines = [
        f"Hello {customer.name},",
        "",
        f"Your refund request for order #{order_ref} has been {refund_request.request_status}.",
    ]
    if refund_request.admin_notes:
        lines.append(f"Notes: {refund_request.admin_notes}")
    if refund_request.processed_at:
        lines.append(f"Updated: {refund_request.processed_at:%B %d, %Y at %I:%M %p}")
    return _deliver('refund status', customer.email, subject, "\n".join(lines) + "\n")
