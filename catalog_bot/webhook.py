# catalog_bot/webhook.py
# ------------------------------------------------------------
# Boundary between the WhatsApp Cloud API webhook and the dialog engine
# - pulls (from, text.body, image) out of entry[0].changes[0].value.messages[0]
# - runs the dialog, queues the reply, stores the exchange in message_logs
# - always reports a short status string (the HTTP layer answers 200)
# ------------------------------------------------------------
import json
import logging
from typing import Any, Mapping, NamedTuple, Optional

logger = logging.getLogger(__name__)

PROCESSED = "Message processed successfully"


class MissingSection(ValueError):
    """The payload lacks entry / changes / messages (status updates, test pings...)."""


class InboundMessage(NamedTuple):
    sender: str
    message_id: str
    text: str
    image: Optional[Mapping[str, Any]]


def _first(container: Any, key: str, label: str) -> Mapping[str, Any]:
    items = container.get(key) if isinstance(container, Mapping) else None
    if not isinstance(items, list) or not items or not isinstance(items[0], Mapping):
        raise MissingSection(f"No {label} found")
    return items[0]


def extract_message(payload: Any) -> InboundMessage:
    entry = _first(payload, "entry", "entries")
    change = _first(entry, "changes", "changes")
    value = change.get("value") or {}
    message = _first(value, "messages", "messages")

    text = message.get("text") or {}
    image = message.get("image")
    return InboundMessage(
        sender=str(message.get("from") or ""),
        message_id=str(message.get("id") or ""),
        text=str(text.get("body") or "") if isinstance(text, Mapping) else "",
        image=image if isinstance(image, Mapping) else None,
    )


class WebhookHandler:
    """
    engine    DialogEngine
    outbound  object with submit(to, text) (OutboundQueue)
    log       optional MessageLogRepository
    """

    def __init__(self, engine, outbound, log=None):
        self._engine = engine
        self._outbound = outbound
        self._log = log

    def handle(self, payload: Any) -> str:
        logger.info(f"Received WhatsApp payload: {json.dumps(payload, ensure_ascii=False)[:2000]}")
        try:
            msg = extract_message(payload)
        except MissingSection as e:
            logger.info(f"Ignoring webhook call: {e}")
            return str(e)

        logger.info(f"Message {msg.message_id} from {msg.sender}: {msg.text!r} image={msg.image is not None}")
        try:
            reply = self._engine.dispatch(msg.sender, msg.text, msg.image)
        except Exception as e:
            logger.exception(f"Error processing WhatsApp message from {msg.sender}")
            return f"Error processing message: {e}"

        if reply:
            self._outbound.submit(msg.sender, reply)
        if self._log is not None:
            self._log.record(msg.sender, msg.text, reply)
        return PROCESSED
