import logging
from typing import Protocol
from urllib.parse import urljoin

import httpx

from portal.core.config import Settings


logger = logging.getLogger(__name__)


class MailerError(Exception):
    pass


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> None:
        ...


class ResendMailer:
    def __init__(self, config: Settings, timeout: float = 10.0):
        self.api_key = config.resend_api_key
        self.sender = config.email_from
        self.url = urljoin(config.resend_api_url.rstrip("/") + "/", "emails")
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        payload = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        with httpx.Client(timeout=self.timeout) as client:
            try:
                response = client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as exc:
                logger.error("Resend dispatch failed: %s", exc)
                raise MailerError(str(exc)) from exc


def render_reset_email(reset_link: str, expires_minutes: int) -> str:
    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"></head>
  <body style="font-family: Arial, sans-serif; background-color: #f4f4f5; padding: 40px 20px;">
    <div style="max-width: 480px; margin: 0 auto; background-color: #ffffff; border-radius: 12px; padding: 40px;">
      <h1 style="color: #18181b; font-size: 24px;">Reset Your Password</h1>
      <p style="color: #52525b; font-size: 16px;">
        We received a request to reset your password. Click the button below to create a new password:
      </p>
      <a href="{reset_link}" style="display: inline-block; background-color: #3b82f6; color: #ffffff; padding: 12px 32px; border-radius: 8px; text-decoration: none;">
        Reset Password
      </a>
      <p style="color: #71717a; font-size: 14px;">
        This link will expire in {expires_minutes} minutes. If you didn't request a password reset, you can safely ignore this email.
      </p>
    </div>
  </body>
</html>
"""
