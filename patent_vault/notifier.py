"""Annuity reminder e-mails."""

import logging
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from jinja2 import Template

from .config import SmtpConfig
from .models import Patent

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = Template("""
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
  body { font-family: Arial, "Microsoft JhengHei", sans-serif; color: #333; max-width: 640px; margin: 0 auto; }
  .header { background: #1e3a8a; color: white; padding: 20px; border-radius: 8px 8px 0 0; }
  .content { padding: 20px; border: 1px solid #e2e8f0; border-top: none; border-radius: 0 0 8px 8px; }
  .label { font-weight: bold; color: #4a5568; font-size: 13px; }
  .value { color: #1a202c; margin-bottom: 8px; }
  .deadline { font-weight: bold; font-size: 15px; }
  .deadline-urgent { color: #e53e3e; }
  .deadline-ok { color: #38a169; }
  a { color: #2b6cb0; }
  .footer { font-size: 12px; color: #a0aec0; margin-top: 20px; padding-top: 12px; border-top: 1px solid #e2e8f0; }
</style>
</head>
<body>
<div class="header">
  <h2 style="margin:0;">專利年費繳納提醒</h2>
  <p style="margin:4px 0 0 0; opacity:0.9;">{{ patent.name }}</p>
</div>
<div class="content">
  <p>您好，以下專利的年費即將到期，請儘速安排繳納以維持專利權效力。</p>

  <div class="label">專利名稱</div>
  <div class="value">{{ patent.name }}</div>

  {% if patent.patentee %}
  <div class="label">專利權人</div>
  <div class="value">{{ patent.patentee }}</div>
  {% endif %}

  {% if patent.country %}
  <div class="label">申請國家</div>
  <div class="value">{{ patent.country }}</div>
  {% endif %}

  {% if patent.app_number %}
  <div class="label">申請號</div>
  <div class="value">{{ patent.app_number }}</div>
  {% endif %}

  {% if patent.pub_number %}
  <div class="label">公開/公告號</div>
  <div class="value">{{ patent.pub_number }}</div>
  {% endif %}

  <div class="label">年費到期日</div>
  {% if patent.annuity_date %}
  <div class="value deadline {% if days_remaining is not none and days_remaining <= 30 %}deadline-urgent{% else %}deadline-ok{% endif %}">
    {{ patent.annuity_date.isoformat() }}
    {% if days_remaining is not none %}
      {% if days_remaining > 0 %}(剩餘 {{ days_remaining }} 天){% else %}(已逾期){% endif %}
    {% endif %}
  </div>
  {% else %}
  <div class="value">未設定</div>
  {% endif %}

  <div class="label">年費有效年次</div>
  <div class="value">第 {{ patent.annuity_year }} 年</div>

  {% if patent.link %}
  <div class="label">連結</div>
  <div class="value"><a href="{{ patent.link }}">{{ patent.link }}</a></div>
  {% endif %}

  <div class="footer">
    <p>PatentVault — 專利期限管理系統自動通知</p>
  </div>
</div>
</body>
</html>
""")


def render_annuity_reminder(patent: Patent, today: date | None = None) -> tuple[str, str]:
    """Build the subject and HTML body of an annuity reminder.

    Returns:
        (subject, html) tuple.
    """
    today = today or date.today()
    days_remaining = patent.days_until_annuity(today)
    subject = f"【年費提醒】{patent.name}"
    if patent.annuity_date:
        subject += f" — 年費到期日 {patent.annuity_date.isoformat()}"

    html = REMINDER_TEMPLATE.render(patent=patent, days_remaining=days_remaining)
    return subject, html


class EmailNotifier:
    """Sends annuity reminder emails via SMTP."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def recipients_for(self, patent: Patent) -> list[str]:
        """The patent's own notification list, else the configured recipients."""
        return list(patent.notification_emails) or list(self.config.recipients)

    def send_annuity_reminder(self, patent: Patent, today: date | None = None) -> bool:
        """Send the reminder for one patent.

        Returns:
            True if the email was sent (or email is disabled), False on failure.
        """
        subject, html = render_annuity_reminder(patent, today)
        return self._send_email(subject, html, self.recipients_for(patent))

    def _send_email(self, subject: str, html_body: str, recipients: list[str]) -> bool:
        """Send an HTML email to the given recipients."""
        if not self.config.enabled:
            logger.info("Email notifications disabled in config")
            return True

        if not recipients:
            logger.warning("No email recipients for reminder")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.config.user
            msg["To"] = ", ".join(recipients)
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            server = smtplib.SMTP(self.config.host, self.config.port)
            if self.config.use_tls:
                server.starttls()

            server.login(self.config.user, self.config.password)
            server.sendmail(self.config.user, recipients, msg.as_string())
            server.quit()

            logger.info(f"Email sent: '{subject}' to {len(recipients)} recipients")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email: {e}")
            return False
