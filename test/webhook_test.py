import unittest
from unittest import mock

from catalog_bot.conversation import ConversationStore
from catalog_bot.dialog import DialogEngine
from catalog_bot.webhook import PROCESSED, MissingSection, WebhookHandler, extract_message
from fakes import FakeImageStore, FakeProductRepository


def payload(message=None, **value):
    if message is not None:
        value["messages"] = [message]
    return {"object": "whatsapp_business_account", "entry": [{"id": "1", "changes": [{"value": value, "field": "messages"}]}]}


def text_message(body, sender="573001234567"):
    return {"from": sender, "id": "wamid.1", "type": "text", "text": {"body": body}}


class ExtractMessageTests(unittest.TestCase):
    def test_text_message(self) -> None:
        msg = extract_message(payload(text_message("Subir producto")))
        self.assertEqual(msg.sender, "573001234567")
        self.assertEqual(msg.message_id, "wamid.1")
        self.assertEqual(msg.text, "Subir producto")
        self.assertIsNone(msg.image)

    def test_image_message(self) -> None:
        image = {"url": "https://t/abc", "mime_type": "image/jpeg", "id": "m1"}
        msg = extract_message(payload({"from": "A", "id": "x", "type": "image", "image": image}))
        self.assertEqual(msg.text, "")
        self.assertEqual(msg.image, image)

    def test_missing_sections(self) -> None:
        cases = {
            "No entries found": {},
            "No changes found": {"entry": [{"id": "1", "changes": []}]},
            "No messages found": payload(statuses=[{"status": "delivered"}]),
        }
        for expected, body in cases.items():
            with self.subTest(expected=expected):
                with self.assertRaises(MissingSection) as ctx:
                    extract_message(body)
                self.assertEqual(str(ctx.exception), expected)

    def test_non_object_payload(self) -> None:
        with self.assertRaises(MissingSection):
            extract_message([1, 2, 3])


class WebhookHandlerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = ConversationStore(idle_timeout=None)
        self.products = FakeProductRepository()
        self.engine = DialogEngine(self.store, self.products, FakeImageStore())
        self.outbound = mock.Mock()
        self.log = mock.Mock()
        self.handler = WebhookHandler(self.engine, self.outbound, log=self.log)

    def test_reply_is_sent_and_logged(self) -> None:
        status = self.handler.handle(payload(text_message("ayuda")))
        self.assertEqual(status, PROCESSED)
        to, body = self.outbound.submit.call_args[0]
        self.assertEqual(to, "573001234567")
        self.assertIn("Bienvenido", body)
        self.log.record.assert_called_once_with("573001234567", "ayuda", body)

    def test_status_update_changes_nothing(self) -> None:
        status = self.handler.handle(payload(statuses=[{"id": "wamid.1", "status": "read"}]))
        self.assertEqual(status, "No messages found")
        self.outbound.submit.assert_not_called()
        self.assertEqual(len(self.store), 0)

    def test_dispatch_failure_is_reported_not_raised(self) -> None:
        engine = mock.Mock()
        engine.dispatch.side_effect = RuntimeError("boom")
        handler = WebhookHandler(engine, self.outbound)
        status = handler.handle(payload(text_message("hola")))
        self.assertEqual(status, "Error processing message: boom")
        self.outbound.submit.assert_not_called()


if __name__ == "__main__":
    unittest.main()
