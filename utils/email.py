import resend
from config import config
from logging_config import get_logger
from datetime import datetime

logger = get_logger("email")

# Set the API key for the resend SDK
if config.RESEND_API_KEY:
    resend.api_key = config.RESEND_API_KEY


def is_email_configured() -> bool:
    return bool(config.RESEND_API_KEY) and config.RESEND_API_KEY != "your_resend_api_key_here"


def send_email(to_email: str, subject: str, html_content: str, text_content: str = None):
    """
    Utility function to send an email using Resend.
    Does nothing if RESEND_API_KEY is not configured.
    """
    if not is_email_configured():
        logger.warning(f"Resend API key not configured. Mock sending email to {to_email} with subject '{subject}'")
        return None

    try:
        params = {
            "from": f"{config.COMPANY_NAME} <{config.MAIL_FROM}>",
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            params["text"] = text_content
        response = resend.Emails.send(params)
        logger.info(f"Email sent successfully to {to_email}", extra={"data": {"email_id": response.get("id")}})
        return response
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
        return None


def demo_payload(to_email: str, subject: str, html_content: str, message: str) -> dict:
    """Response body used when email delivery is not configured."""
    return {
        "success": True,
        "demo": True,
        "message": message,
        "email_info": {
            "to": to_email,
            "subject": subject,
            "html_content": html_content,
        },
    }


def _date(value) -> str:
    return value.strftime("%d/%m/%Y") if isinstance(value, datetime) else "N/A"


def _money(value) -> str:
    return f"€{(value or 0):,.2f}"


def base_email_template(title: str, preheader: str, content: str, cta_url: str = None, cta_text: str = None, footer_text: str = "") -> str:
    """
    Generates the shared HTML skeleton for every customer and employee email.
    """
    cta_html = f"""
    <div style="text-align: center; margin: 32px 0;">
        <a href="{cta_url}" style="background-color: #2563eb; color: #ffffff; padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600; font-size: 16px; display: inline-block;">
            {cta_text}
        </a>
    </div>
    """ if cta_url and cta_text else ""

    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{title}</title>
    </head>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif; background-color: #f3f4f6; margin: 0; padding: 0; line-height: 1.6;">
        <div style="display: none; max-height: 0px; overflow: hidden;">
            {preheader}
        </div>

        <table width="100%" cellpadding="0" cellspacing="0" border="0" style="background-color: #f3f4f6; margin: 0; padding: 40px 20px;">
            <tr>
                <td align="center">
                    <table width="100%" cellpadding="0" cellspacing="0" border="0" style="max-width: 600px; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
                        <tr>
                            <td style="background-color: #1e3a8a; padding: 24px; text-align: center;">
                                <h1 style="color: #ffffff; font-size: 22px; margin: 0; font-weight: 700;">{config.COMPANY_NAME}</h1>
                            </td>
                        </tr>
                        <tr>
                            <td style="padding: 40px 32px; color: #374151;">
                                {content}
                                {cta_html}
                            </td>
                        </tr>
                        <tr>
                            <td style="background-color: #f9fafb; padding: 24px 32px; text-align: center; border-top: 1px solid #e5e7eb;">
                                <p style="color: #6b7280; font-size: 13px; margin: 0; line-height: 1.5;">
                                    {footer_text}<br>
                                    {config.COMPANY_EMAIL} | {config.COMPANY_PHONE} | {config.COMPANY_ADDRESS}
                                </p>
                            </td>
                        </tr>
                    </table>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """


def _detail_rows(rows) -> str:
    cells = "".join(
        f"""
            <tr>
                <td style="padding: 10px; border-bottom: 1px solid #e5e7eb; color: #6b7280; width: 180px;">{label}</td>
                <td style="padding: 10px; border-bottom: 1px solid #e5e7eb; font-weight: 600; color: #111827;">{value}</td>
            </tr>"""
        for label, value in rows
    )
    return f'<table width="100%" cellpadding="0" cellspacing="0" border="0" style="margin-bottom: 24px;">{cells}</table>'


def contract_signature_email(contract: dict):
    """
    Builds the email asking a customer to review and sign their contract.
    Returns (subject, html).
    """
    customer = contract.get("customer") or {}
    subject = f"Contract Signature Required - {contract.get('contract_number')}"
    sign_url = f"{config.FRONTEND_URL}/contracts/{contract['_id']}/sign"

    details = _detail_rows([
        ("Contract Number", contract.get("contract_number")),
        ("Contract Type", contract.get("contract_type")),
        ("Start Date", _date(contract.get("start_date"))),
        ("End Date", _date(contract.get("end_date"))),
        ("Billing Frequency", contract.get("billing_frequency")),
        ("Total Amount", _money(contract.get("total_amount"))),
    ])
    services = "".join(
        f"<li>{s.get('name')} ({s.get('frequency') or 'As Needed'}) - {_money(s.get('price'))}/hour</li>"
        for s in contract.get("services") or []
    )
    services_html = f'<p style="font-weight: 600;">Services</p><ul>{services}</ul>' if services else ""

    content = f"""
        <h2 style="color: #111827; font-size: 20px; font-weight: 600; margin-top: 0;">Your Service Contract</h2>
        <p>Dear {customer.get('name', 'Customer')},</p>
        <p>Thank you for choosing {config.COMPANY_NAME}. Please review the contract details below and sign it online.</p>
        {details}
        {services_html}
    """

    html = base_email_template(
        title="Contract Signature Required",
        preheader=f"Please sign contract {contract.get('contract_number')}",
        content=content,
        cta_url=sign_url,
        cta_text="Review & Sign Contract",
        footer_text="If you received this email in error, please contact us immediately.",
    )
    return subject, html


def employee_contract_email(contract: dict, employee: dict):
    """Returns (subject, html, text) for an employment contract summary."""
    name = f"{employee.get('first_name', '')} {employee.get('last_name', '')}".strip()
    subject = f"Employment Contract - {contract.get('contract_number') or contract.get('contract_type')}"
    hours = (contract.get("working_hours") or {}).get("weekly_hours")
    leave = contract.get("leave_entitlement") or {}
    benefits = contract.get("benefits") or []

    rows = [
        ("Contract Number", contract.get("contract_number") or "N/A"),
        ("Contract Type", contract.get("contract_type")),
        ("Start Date", _date(contract.get("start_date"))),
    ]
    if contract.get("end_date"):
        rows.append(("End Date", _date(contract.get("end_date"))))
    rows += [
        ("Salary", _money(contract.get("salary"))),
        ("Payment Frequency", contract.get("payment_frequency") or "Monthly"),
        ("Weekly Hours", f"{hours} hours" if hours is not None else "TBD"),
        ("Annual Leave", f"{leave.get('annual_leave', 'TBD')} days"),
        ("Sick Leave", f"{leave.get('sick_leave', 'TBD')} days"),
        ("Paid Holidays", f"{leave.get('paid_holidays', 'TBD')} days"),
    ]

    benefits_html = ""
    if benefits:
        items = "".join(f"<li>{b}</li>" for b in benefits)
        benefits_html = f'<p style="font-weight: 600;">Benefits Package</p><ul>{items}</ul>'

    content = f"""
        <h2 style="color: #111827; font-size: 20px; font-weight: 600; margin-top: 0;">Employment Contract - {contract.get('contract_type')}</h2>
        <p>Dear {name},</p>
        <p>We are pleased to provide you with your employment contract details. Please review the information below and keep this email for your records.</p>
        {_detail_rows(rows)}
        {benefits_html}
        <p>If you have any questions or notice any discrepancies, please contact HR immediately.</p>
        <p>Welcome to the team!</p>
    """
    html = base_email_template(
        title="Employment Contract",
        preheader=f"Your {contract.get('contract_type')} contract details",
        content=content,
        footer_text="This is an automated message. Please do not reply to this email.",
    )

    lines = [f"Employment Contract - {contract.get('contract_type')}", "", f"Dear {name},", ""]
    lines += [f"- {label}: {value}" for label, value in rows]
    if benefits:
        lines += ["", "BENEFITS PACKAGE:"] + [f"- {b}" for b in benefits]
    lines += ["", "Welcome to the team!", "", f"{config.COMPANY_NAME} | {config.COMPANY_PHONE} | {config.COMPANY_ADDRESS}"]
    return subject, html, "\n".join(lines)


def invoice_email(invoice: dict, payment_url: str, subject: str = None):
    """Returns (subject, html) for an invoice with its one-click payment link."""
    customer = invoice.get("customer") or {}
    subject = subject or f"Invoice #{invoice.get('invoice_number')} from {config.COMPANY_NAME}"

    lines = "".join(
        f"""
            <tr>
                <td style="padding: 8px; border-bottom: 1px solid #e5e7eb;">{line.get('description')}</td>
                <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">{line.get('quantity')}</td>
                <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">{_money(line.get('unit_price'))}</td>
                <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">{_money(line.get('total'))}</td>
            </tr>"""
        for line in invoice.get("services") or []
    )
    header = _detail_rows([
        ("Issue Date", _date(invoice.get("issue_date"))),
        ("Due Date", _date(invoice.get("due_date"))),
        ("Status", invoice.get("status")),
    ])
    summary = _detail_rows([
        ("Subtotal", _money(invoice.get("subtotal"))),
        (f"VAT ({invoice.get('tax_rate', 0)}%)", _money(invoice.get("tax_amount"))),
        ("Discount", _money(invoice.get("discount"))),
        ("Total Due", _money(invoice.get("total_amount"))),
    ])
    content = f"""
        <h2 style="color: #111827; font-size: 20px; font-weight: 600; margin-top: 0;">Invoice {invoice.get('invoice_number')}</h2>
        <p>Dear {customer.get('name', 'Customer')},</p>
        <p>Please find your invoice details below.</p>
        {header}
        <table width="100%" cellpadding="0" cellspacing="0" border="0" style="margin-bottom: 24px; font-size: 14px;">
            <tr style="background-color: #f9fafb;">
                <th style="padding: 8px; text-align: left;">Description</th>
                <th style="padding: 8px; text-align: right;">Qty</th>
                <th style="padding: 8px; text-align: right;">Unit Price</th>
                <th style="padding: 8px; text-align: right;">Total</th>
            </tr>
            {lines}
        </table>
        {summary}
    """
    html = base_email_template(
        title=f"Invoice {invoice.get('invoice_number')}",
        preheader=f"Invoice {invoice.get('invoice_number')} - {_money(invoice.get('total_amount'))} due {_date(invoice.get('due_date'))}",
        content=content,
        cta_url=payment_url,
        cta_text="Confirm Payment",
        footer_text=f"This email was sent regarding invoice {invoice.get('invoice_number')}.",
    )
    return subject, html


def configuration_check_email():
    subject = "Test Email from Cleaning Management System"
    text = "This is a test email to verify email configuration."
    html = base_email_template(
        title="Test Email",
        preheader=text,
        content=f"<h2>Test Email</h2><p>{text}</p><p>If you receive this email, the email service is working correctly.</p>",
    )
    return subject, html, text
