# utils/mail.py
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

__all__ = ["SmtpSettings", "send_email", "mask_email"]

log = logging.getLogger("mail")

RELAY_HOST = "smtp-relay.brevo.com"
GMAIL_HOST = "smtp.gmail.com"


def mask_email(addr: Optional[str]) -> str:
    if not addr:
        return ""
    try:
        local, domain = addr.split("@", 1)
    except ValueError:
        return (addr[:6] + "…") if len(addr) > 6 else addr
    local_mask = local[0] + "***" if len(local) > 1 else "*"
    # keep domain TLD visible
    dot = domain.rfind(".")
    if dot > 0:
        dom_mask = domain[0] + "***" + domain[dot:]
    else:
        dom_mask = (domain[:1] or "") + "***"
    return f"{local_mask}@{dom_mask}"


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    use_ssl: bool          # implicit TLS (465); otherwise STARTTLS
    login: str
    password: str
    mail_from: str
    timeout: int = 10

    @classmethod
    def from_config(cls, config) -> Optional["SmtpSettings"]:
        """
        Explicit SMTP_USER/SMTP_PASS (relay) win over EMAIL_USER/EMAIL_PASS (Gmail).
        Returns None when neither pair is configured.
        """
        smtp_user, smtp_pass = config.get("SMTP_USER"), config.get("SMTP_PASS")
        email_user, email_pass = config.get("EMAIL_USER"), config.get("EMAIL_PASS")
        secure_raw = config.get("SMTP_SECURE")
        timeout = int(config.get("MAIL_TIMEOUT") or 10)

        if smtp_user and smtp_pass:
            host = config.get("SMTP_HOST") or RELAY_HOST
            port = int(config.get("SMTP_PORT") or 587)
            use_ssl = str(secure_raw or "false").strip().lower() == "true"
            login, password = smtp_user, smtp_pass
        elif email_user and email_pass:
            host = config.get("SMTP_HOST") or GMAIL_HOST
            port = int(config.get("SMTP_PORT") or 465)
            use_ssl = str(secure_raw or "true").strip().lower() == "true"
            login, password = email_user, email_pass
        else:
            return None

        mail_from = config.get("SENDER_EMAIL") or login
        return cls(host=host, port=port, use_ssl=use_ssl, login=login,
                   password=password, mail_from=mail_from, timeout=timeout)


def send_email(settings: SmtpSettings, *, to: str, subject: str, text: str = "", html: str = "") -> None:
    """
    Deliver one message. Raises RuntimeError when the transport fails; every
    socket operation is bounded by ``settings.timeout``.
    """
    msg = EmailMessage()
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text or "")
    if html:
        msg.add_alternative(html, subtype="html")

    ctx = ssl.create_default_context()
    try:
        if settings.use_ssl:
            with smtplib.SMTP_SSL(settings.host, settings.port, context=ctx, timeout=settings.timeout) as s:
                s.login(settings.login, settings.password)
                s.send_message(msg)
        else:
            with smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout) as s:
                s.ehlo()
                s.starttls(context=ctx)
                s.ehlo()
                s.login(settings.login, settings.password)
                s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        log.warning("[mail] %s:%s failed for %s: %r", settings.host, settings.port, mask_email(to), e)
        raise RuntimeError(f"SMTP delivery failed: {e!r}") from e

    log.info("[mail] sent via %s:%s as %s to %s", settings.host, settings.port,
             mask_email(settings.login), mask_email(to))
