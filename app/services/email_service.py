# app/services/email_service.py
"""
Outbound mail: Brevo / Resend over HTTP, everything else over SMTP
"""

import re
from email.message import EmailMessage
from typing import Dict, List, Optional, Tuple, Union

import aiohttp
import aiosmtplib

from app.config import settings
from app.utils.errors import ConfigurationError, EmailDeliveryError
from app.utils.logger import logger

BREVO_URL = "https://api.brevo.com/v3/smtp/email"
RESEND_URL = "https://api.resend.com/emails"

SMTP_HOSTS = {
    "gmail": "smtp.gmail.com",
    "outlook": "smtp-mail.outlook.com",
    "hotmail": "smtp-mail.outlook.com",
    "resend": "smtp.resend.com",
}

ADDRESS_PATTERN = re.compile(r"^(.*)<(.+)>$")


def parse_address(address: Optional[str]) -> Tuple[str, str]:
    """'"Name" <a@b.c>' -> ('Name', 'a@b.c')"""
    if not address:
        return "", ""
    match = ADDRESS_PATTERN.match(address.strip())
    if match:
        return match.group(1).strip().strip('"'), match.group(2).strip()
    return "", address.strip()


def _as_list(to: Union[str, List[str], None]) -> List[str]:
    if not to:
        return []
    if isinstance(to, list):
        return to
    return [to]


class EmailService:

    @property
    def provider(self) -> str:
        return (settings.email_service or "gmail").lower()

    def default_sender(self) -> str:
        return f'"{settings.email_from_name}" <{settings.email_user or ""}>'

    def build_mail_options(self, to: str, subject: str, html: str, text: Optional[str] = None,
                           sender: Optional[str] = None) -> Dict:
        return {
            "from": sender or self.default_sender(),
            "to": to,
            "subject": subject,
            "html": html,
            "text": text,
        }

    async def send_mail(self, mail_options: Dict) -> Dict:
        provider = self.provider
        if provider == "brevo":
            return await self._send_brevo(mail_options)
        if provider == "resend" and settings.resend_api_key:
            return await self._send_resend(mail_options)
        return await self._send_smtp(mail_options)

    async def _post_json(self, url: str, headers: Dict, payload: Dict, name: str) -> Dict:
        timeout = aiohttp.ClientTimeout(total=settings.email_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, headers=headers, json=payload) as response:
                if response.status >= 300:
                    error_text = await response.text()
                    logger.error(f"❌ {name} API error: {response.status} - {error_text}")
                    raise EmailDeliveryError(f"{name} API error: {response.status} {response.reason} - {error_text}")
                return await response.json(content_type=None)

    async def _send_brevo(self, mail_options: Dict) -> Dict:
        if not settings.brevo_api_key:
            raise ConfigurationError("BREVO_API_KEY is required when EMAIL_SERVICE=brevo")

        sender_name, sender_email = parse_address(mail_options.get("from"))
        recipients = []
        for address in _as_list(mail_options.get("to")):
            name, email = parse_address(address)
            if email:
                recipients.append({"email": email, "name": name} if name else {"email": email})

        payload = {
            "sender": {"email": sender_email, "name": sender_name or settings.email_from_name},
            "to": recipients,
            "subject": mail_options.get("subject"),
            "htmlContent": mail_options.get("html"),
        }
        if mail_options.get("text"):
            payload["textContent"] = mail_options["text"]

        return await self._post_json(
            BREVO_URL,
            {"Content-Type": "application/json", "api-key": settings.brevo_api_key},
            payload,
            "Brevo",
        )

    async def _send_resend(self, mail_options: Dict) -> Dict:
        payload = {
            "from": mail_options.get("from"),
            "to": _as_list(mail_options.get("to")),
            "subject": mail_options.get("subject"),
            "html": mail_options.get("html"),
        }
        if mail_options.get("text"):
            payload["text"] = mail_options["text"]

        return await self._post_json(
            RESEND_URL,
            {"Content-Type": "application/json", "Authorization": f"Bearer {settings.resend_api_key}"},
            payload,
            "Resend",
        )

    def smtp_params(self) -> Dict:
        provider = self.provider
        if provider == "resend":
            return {
                "hostname": SMTP_HOSTS["resend"],
                "port": settings.email_smtp_port if settings.email_smtp_port != 587 else 465,
                "username": "resend",
                "password": settings.resend_api_key,
                "use_tls": True,
            }
        if provider in ("outlook", "hotmail"):
            return {
                "hostname": SMTP_HOSTS[provider],
                "port": 587,
                "username": settings.email_user,
                "password": settings.email_pass,
                "start_tls": True,
            }

        hostname = settings.smtp_host if provider == "smtp" and settings.smtp_host else SMTP_HOSTS["gmail"]
        if settings.email_use_secure:
            port = settings.email_smtp_port if settings.email_smtp_port != 587 else 465
            return {
                "hostname": hostname,
                "port": port,
                "username": settings.email_user,
                "password": settings.email_pass,
                "use_tls": True,
            }
        return {
            "hostname": hostname,
            "port": settings.email_smtp_port,
            "username": settings.email_user,
            "password": settings.email_pass,
            "start_tls": True,
        }

    async def _send_smtp(self, mail_options: Dict) -> Dict:
        params = self.smtp_params()
        if not params.get("username") or not params.get("password"):
            raise ConfigurationError("Email credentials are not configured")

        recipients = _as_list(mail_options.get("to"))
        message = EmailMessage()
        message["From"] = mail_options.get("from") or self.default_sender()
        message["To"] = ", ".join(recipients)
        message["Subject"] = mail_options.get("subject", "")
        message.set_content(mail_options.get("text") or "Please open this email in an HTML capable client.")
        if mail_options.get("html"):
            message.add_alternative(mail_options["html"], subtype="html")

        try:
            errors, response = await aiosmtplib.send(
                message,
                timeout=settings.email_timeout_seconds,
                **params,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"❌ SMTP send failed via {params['hostname']}: {e}")
            raise EmailDeliveryError(f"SMTP send failed: {e}")

        logger.info(f"📧 Email sent via {params['hostname']}: {response}")
        return {"response": response, "rejected": list(errors.keys())}


email_service = EmailService()
