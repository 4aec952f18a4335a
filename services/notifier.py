# services/notifier.py
"""
Notification sender.

``send`` returns True/False and never raises; callers only log the outcome.
"""
from __future__ import annotations

import logging
from typing import Optional

from utils.mail import SmtpSettings, mask_email, send_email

log = logging.getLogger("mail")


class Notifier:
    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        raise NotImplementedError


class SmtpNotifier(Notifier):
    def __init__(self, settings: SmtpSettings):
        self.settings = settings

    def send(self, to, subject, text, html=None) -> bool:
        try:
            send_email(self.settings, to=to, subject=subject, text=text, html=html or "")
            return True
        except Exception:
            log.exception("[mail] delivery to %s failed", mask_email(to))
            return False


class LogNotifier(Notifier):
    """No transport configured: log the message instead of delivering it."""

    def send(self, to, subject, text, html=None) -> bool:
        log.warning("[mail] no transport configured; to=%s subject=%r body=%r", to, subject, text)
        return True


def build_notifier(config) -> Notifier:
    settings = SmtpSettings.from_config(config)
    if settings is None:
        log.warning("[mail] Email credentials missing (SMTP_USER/SMTP_PASS or EMAIL_USER/EMAIL_PASS); "
                    "messages will only be logged")
        return LogNotifier()
    log.info("[mail] ready via %s:%s (ssl=%s)", settings.host, settings.port, settings.use_ssl)
    return SmtpNotifier(settings)


# ── Message bodies ──────────────────────────────────────────────────────────
def _code_html(title: str, lead: str, code: str, minutes: int) -> str:
    return f"""
      <div style="font-family:system-ui,Segoe UI,Roboto,Arial;max-width:600px;margin:0 auto">
        <h2>{title}</h2>
        <p>{lead}</p>
        <div style="font-size:24px;font-weight:700;letter-spacing:3px">{code}</div>
        <p>This code expires in {_humanize_minutes(minutes)}.</p>
        <p>If you didn't request this code, please ignore this email.</p>
      </div>
    """


def _humanize_minutes(minutes: int) -> str:
    if minutes % 60 == 0 and minutes >= 60:
        hours = minutes // 60
        return f"{hours} hour" + ("s" if hours != 1 else "")
    return f"{minutes} minute" + ("s" if minutes != 1 else "")


def welcome_message(app_name: str, email: str) -> tuple[str, str, str]:
    subject = f"Welcome to {app_name}"
    text = f"Welcome to {app_name}. Your account has been created with email ID: {email}"
    html = f"<p>Welcome to <strong>{app_name}</strong>.</p><p>Your account has been created with email ID: {email}</p>"
    return subject, text, html


def verify_otp_message(code: str, minutes: int) -> tuple[str, str, str]:
    subject = "Account Verification OTP"
    text = f"Your OTP is {code}. Verify your account using this OTP. It expires in {_humanize_minutes(minutes)}."
    html = _code_html("Verify your email", "Your verification code is:", code, minutes)
    return subject, text, html


def reset_otp_message(code: str, minutes: int) -> tuple[str, str, str]:
    subject = "Password Reset OTP"
    text = f"Your OTP for resetting your password is {code}. It expires in {_humanize_minutes(minutes)}."
    html = _code_html("Reset your password", "Your password reset code is:", code, minutes)
    return subject, text, html
