# catalog_bot/services/whatsapp.py
# ------------------------------------------------------------
# WhatsApp Cloud API client
# - send_text(): POST {api}/{version}/{phone_number_id}/messages; never raises
# - resolve_media_url(): media id -> short-lived download URL
# - OutboundQueue: bounded queue + worker threads so replies leave the webhook thread
# ------------------------------------------------------------
import logging
import queue
import threading
from typing import List, Optional

import requests

from catalog_bot.config import Settings

logger = logging.getLogger(__name__)


def build_text_message(to_number: str, body_text: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to_number,
        "type": "text",
        "text": {"body": body_text},
    }


class WhatsAppMessenger:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._settings = settings
        self._http = session or requests.Session()

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._settings.whatsapp_access_token}",
            "Content-Type": "application/json",
        }

    def send_text(self, to_number: str, body_text: str) -> bool:
        """
        Send a free-form text reply. Failures are logged and reported as False;
        the caller still answers the webhook with 200 so Meta does not redeliver.
        """
        url = self._settings.messages_url
        payload = build_text_message(to_number, body_text)
        logger.info(f"Sending WhatsApp message to {to_number}")
        try:
            resp = self._http.post(url, headers=self._headers, json=payload, timeout=self._settings.http_timeout)
        except requests.RequestException as e:
            logger.error(f"Error sending WhatsApp message to {to_number}: {e}")
            return False

        if resp.status_code >= 400:
            logger.error(
                f"WhatsApp API error status={resp.status_code} to={to_number} body={resp.text[:400]}"
            )
            return False
        logger.info(f"Message sent OK to {to_number}: {resp.text[:200]}")
        return True

    def resolve_media_url(self, media_id: str) -> str:
        """Look up the download URL of an inbound media id. Raises requests errors to the caller."""
        s = self._settings
        url = f"{s.whatsapp_api_url.rstrip('/')}/{s.whatsapp_api_version}/{media_id}"
        resp = self._http.get(url, headers=self._headers, timeout=s.http_timeout)
        resp.raise_for_status()
        media_url = resp.json().get("url")
        logger.info(f"Resolved media {media_id} -> {media_url}")
        return media_url


class OutboundQueue:
    """
    Bounded hand-off between webhook threads and the WhatsApp API.
    With workers=0 messages are sent inline on the calling thread.
    When the queue is full the reply is dropped and logged.
    """

    _STOP = object()

    def __init__(self, messenger: WhatsAppMessenger, workers: int = 2, maxsize: int = 100):
        self._messenger = messenger
        self._workers = max(0, workers)
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        for i in range(self._workers - len(self._threads)):
            t = threading.Thread(target=self._run, name=f"whatsapp-outbound-{i}", daemon=True)
            t.start()
            self._threads.append(t)

    def stop(self, timeout: float = 5.0) -> None:
        for _ in self._threads:
            self._queue.put(self._STOP)
        for t in self._threads:
            t.join(timeout)
        self._threads = []

    def submit(self, to_number: str, body_text: str) -> bool:
        if not self._threads:
            return self._messenger.send_text(to_number, body_text)
        try:
            self._queue.put_nowait((to_number, body_text))
        except queue.Full:
            logger.warning(f"Outbound queue full, dropping reply to {to_number}")
            return False
        return True

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                self._messenger.send_text(*item)
            except Exception as e:
                logger.error(f"Outbound worker failed: {e}")
            finally:
                self._queue.task_done()

    def join(self) -> None:
        """Block until every queued reply has been handled."""
        self._queue.join()
