"""
Report senders: hand a finished report to the user's mail program.

Two backends share the ReportSender interface:
  * UrlLaunchSender opens a web mail compose page or a mailto: link.
  * DraftFileSender writes an unsent .eml draft and opens it in the
    desktop mail composer.
Neither sends mail itself; the user reviews and sends from their client.
"""
import abc
import webbrowser
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Callable, List, Optional, Union
from urllib.parse import quote

from taskmail.models import EmailReport, SendResult
from taskmail.recovery import FileOperationError, MailEncodingError
from taskmail.data.io import atomic_write
from taskmail.logs import get_logger

log = get_logger("mail")

WEBMAIL_COMPOSE_URL = "https://mail.google.com/mail/"
BACKEND_WEBMAIL = "webmail"
BACKEND_MAILTO = "mailto"
BACKEND_DRAFT = "draft"
BACKENDS = (BACKEND_WEBMAIL, BACKEND_MAILTO, BACKEND_DRAFT)

Opener = Callable[[str], bool]


def _quote(value: str, safe: str = "") -> str:
    try:
        return quote(value, safe=safe)
    except UnicodeEncodeError as e:
        raise MailEncodingError(f"Cannot percent-encode {value!r}: {e}") from e


def _recipients(report: EmailReport) -> str:
    return ",".join(_quote(r, safe="@") for r in report.recipients)


def build_mailto_url(report: EmailReport) -> str:
    return (f"mailto:{_recipients(report)}"
            f"?subject={_quote(report.subject)}&body={_quote(report.body)}")


def build_webmail_url(report: EmailReport) -> str:
    return (f"{WEBMAIL_COMPOSE_URL}?view=cm&fs=1&to={_recipients(report)}"
            f"&su={_quote(report.subject)}&body={_quote(report.body)}")


def build_draft(report: EmailReport) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = report.subject
    recipients = [r for r in report.recipients if r]
    if recipients:
        message["To"] = ", ".join(recipients)
    message["X-Unsent"] = "1"
    message.set_content(report.body)
    return message


def _open(opener: Opener, target: str) -> bool:
    try:
        return bool(opener(target))
    except webbrowser.Error as e:
        log.warning(f"Could not open {target}: {e}")
        return False


class ReportSender(abc.ABC):
    name: str = ""

    @abc.abstractmethod
    def send(self, report: EmailReport) -> SendResult:
        """Hand ``report`` off. Failures come back as an unsuccessful result."""

    def _failed(self, error: str, target: Optional[str] = None) -> SendResult:
        log.error(f"{self.name} sender failed: {error}")
        return SendResult(success=False, backend=self.name, target=target, error=error)


class UrlLaunchSender(ReportSender):
    """Open a compose URL, falling back to the other URL kind if it fails."""

    def __init__(self, prefer: str = BACKEND_WEBMAIL, opener: Optional[Opener] = None):
        if prefer not in (BACKEND_WEBMAIL, BACKEND_MAILTO):
            raise ValueError(f"Unknown URL backend: {prefer}")
        self.name = prefer
        self.opener = opener or webbrowser.open

    def candidate_urls(self, report: EmailReport) -> List[str]:
        webmail = build_webmail_url(report)
        mailto = build_mailto_url(report)
        if self.name == BACKEND_WEBMAIL:
            return [webmail, mailto]
        return [mailto, webmail]

    def send(self, report: EmailReport) -> SendResult:
        try:
            urls = self.candidate_urls(report)
        except MailEncodingError as e:
            return self._failed(str(e))

        for url in urls:
            if _open(self.opener, url):
                log.info(f"Opened compose URL via {self.name}")
                return SendResult(success=True, backend=self.name, target=url)
            log.debug(f"Opener declined {url.split('?', 1)[0]}")
        return self._failed("No program could open the compose URL", target=urls[-1])


class DraftFileSender(ReportSender):
    """Write an unsent RFC 5322 draft and hand its file:// URI to the opener.

    With the default ``webbrowser.open`` the desktop decides what opens the
    ``.eml`` file; that may be a mail client or a browser. The draft stays on
    disk either way.
    """

    name = BACKEND_DRAFT

    def __init__(self, directory: Union[Path, str], opener: Optional[Opener] = None):
        self.directory = Path(directory).expanduser()
        self.opener = opener or webbrowser.open

    def draft_path(self) -> Path:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return self.directory / f"report-{stamp}.eml"

    def send(self, report: EmailReport) -> SendResult:
        try:
            payload = build_draft(report).as_bytes()
        except (UnicodeError, ValueError) as e:
            return self._failed(f"Cannot build draft: {e}")

        path = self.draft_path()
        try:
            atomic_write(path, payload, create_dirs=True)
        except FileOperationError as e:
            return self._failed(str(e), target=str(path))

        if not _open(self.opener, path.resolve().as_uri()):
            return self._failed("No program could open the draft", target=str(path))
        log.info(f"Draft written to {path}")
        return SendResult(success=True, backend=self.name, target=str(path))


def get_sender(settings, opener: Optional[Opener] = None) -> ReportSender:
    """Build the sender named by ``settings.mail_backend``."""
    backend = settings.mail_backend
    if backend == BACKEND_DRAFT:
        return DraftFileSender(settings.draft_dir, opener=opener)
    if backend in (BACKEND_WEBMAIL, BACKEND_MAILTO):
        return UrlLaunchSender(prefer=backend, opener=opener)
    raise ValueError(f"Unknown mail backend: {backend}")
