# pawhaven/services/mail_service.py
import logging


class MailService:
    """
    Outgoing mail stub. Messages are written to the log; swap in an SMTP or
    provider client here when delivery is needed.
    """

    def send_password_reset(self, email: str, link: str) -> bool:
        logging.info(f"[Password Reset] Send to {email}: {link}")
        return True
