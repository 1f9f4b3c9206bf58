"""Send migration alerts via SMTP.

The Markdown report goes out as plain text with an HTML alternative.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import markdown

logger = logging.getLogger(__name__)

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"></head>
<body style="margin:0; padding:24px; background-color:#f4f4f5;">
<div style="max-width:600px; margin:0 auto; background:#ffffff; padding:28px;
            border-radius:8px; border:1px solid #e4e4e7;
            font-family:-apple-system,'Segoe UI',Roboto,Arial,sans-serif;
            font-size:15px; line-height:1.6; color:#18181b;">
{body}
</div>
</body>
</html>
"""

# Inline styles survive most mail clients; <style> blocks often do not.
_STYLE_OVERRIDES = {
    "h1": "font-size:22px; margin:0 0 8px 0; border-bottom:2px solid #dc2626; padding-bottom:8px;",
    "h2": "font-size:18px; margin:24px 0 8px 0;",
    "blockquote": "margin:12px 0; padding:8px 12px; background:#fef2f2; border-left:4px solid #dc2626;",
    "ul": "padding-left:20px; margin:8px 0;",
    "hr": "border:none; border-top:1px solid #e4e4e7; margin:20px 0;",
}


def md_to_html(md_text: str) -> str:
    """Convert Markdown to an email-safe HTML page with inline styles."""
    html = markdown.markdown(md_text, output_format="html")
    for tag, style in _STYLE_OVERRIDES.items():
        html = html.replace(f"<{tag}>", f'<{tag} style="{style}">')
    return _HTML_TEMPLATE.format(body=html)


def send_alert(
    *,
    smtp_host: str,
    smtp_port: int,
    username: str,
    password: str,
    to_addrs: list[str] | str,
    subject: str,
    body_text: str,
) -> None:
    """Send *body_text* (Markdown) to *to_addrs* using STARTTLS."""
    recipients = [to_addrs] if isinstance(to_addrs, str) else list(to_addrs)

    msg = MIMEMultipart("alternative")
    msg["From"] = username
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = subject
    msg.attach(MIMEText(body_text, "plain", "utf-8"))
    msg.attach(MIMEText(md_to_html(body_text), "html", "utf-8"))

    logger.info("Sending alert to %s via %s:%d", ", ".join(recipients), smtp_host, smtp_port)

    with smtplib.SMTP(smtp_host, smtp_port, timeout=30) as server:
        server.ehlo()
        server.starttls()
        server.ehlo()
        server.login(username, password)
        server.sendmail(username, recipients, msg.as_string())

    logger.info("Alert sent to %s", ", ".join(recipients))
