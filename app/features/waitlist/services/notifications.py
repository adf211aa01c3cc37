from pathlib import Path

from fastapi.concurrency import run_in_threadpool
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.features.waitlist.models.waitlist import WaitlistEntry
from app.features.waitlist.utils.referral_code_generator import build_referral_link
from app.platform.exceptions import DispatchError
from app.platform.logger import get_logger
from app.platform.services.email import MailTransport

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "template"


class WaitlistNotifier:
    """Renders and sends the waiting list confirmation email."""

    def __init__(self, transport: MailTransport, app_name: str, landing_page_url: str):
        self.transport = transport
        self.app_name = app_name
        self.landing_page_url = landing_page_url
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render_confirmation(self, entry: WaitlistEntry) -> str:
        template = self.env.get_template("waitlist_confirmation.html")
        return template.render(
            app_name=self.app_name,
            email=entry.email,
            referral_code=entry.referral_code,
            referral_link=build_referral_link(self.landing_page_url, entry.referral_code),
        )

    async def send_confirmation(self, entry: WaitlistEntry) -> None:
        """
        Raises:
            DispatchError: the transport could not hand the message over
        """
        subject = f"Thank you for joining {self.app_name}'s launch waitlist!"
        html = self.render_confirmation(entry)
        try:
            await run_in_threadpool(self.transport, entry.email, subject, html)
        except DispatchError:
            raise
        except Exception as e:
            # transports are third-party code; anything they raise is a dispatch failure
            raise DispatchError(f"Failed to send confirmation email: {e}") from e
