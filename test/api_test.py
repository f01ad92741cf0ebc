"""HTTP surface: webhook verification, inbound messages, image serving, catalog."""

import os
import tempfile
import unittest
from decimal import Decimal
from unittest import mock

from fastapi.testclient import TestClient

from catalog_bot.main import create_app
from catalog_bot.services.images import ImageStore
from fakes import FakeMessenger
from whatsapp_test import make_settings

SELLER = "573001234567"


def inbound(body=None, image=None, sender=SELLER):
    message = {"from": sender, "id": "wamid.x", "type": "text"}
    if body is not None:
        message["text"] = {"body": body}
    if image is not None:
        message["type"] = "image"
        message["image"] = image
    return {"entry": [{"changes": [{"value": {"messages": [message]}}]}]}


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.upload_dir = os.path.join(self.temp_dir.name, "uploads")
        settings = make_settings(
            database_url=f"sqlite:///{os.path.join(self.temp_dir.name, 'catalog.db')}",
            upload_dir=self.upload_dir,
            outbound_workers=0,
        )
        self.http = mock.Mock()
        self.http.get.return_value = mock.Mock(status_code=200, content=b"\xff\xd8photo")
        self.messenger = FakeMessenger()
        images = ImageStore(self.upload_dir, settings.api_base_url, session=self.http)
        self.app = create_app(settings, messenger=self.messenger, images=images)
        self.client = TestClient(self.app)
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        self.temp_dir.cleanup()

    def post(self, body=None, image=None, sender=SELLER):
        return self.client.post("/api/webhook", json=inbound(body, image, sender))


class VerifyWebhookTests(ApiTestCase):
    def test_challenge_echoed_when_token_matches(self) -> None:
        resp = self.client.get(
            "/api/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "1158201444"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, "1158201444")

    def test_forbidden_otherwise(self) -> None:
        for params in (
            {"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "1"},
            {"hub.mode": "unsubscribe", "hub.verify_token": "verify-me", "hub.challenge": "1"},
            {"hub.mode": "subscribe", "hub.verify_token": "VERIFY-ME", "hub.challenge": "1"},
            {},
        ):
            with self.subTest(params=params):
                self.assertEqual(self.client.get("/api/webhook", params=params).status_code, 403)


class ReceiveMessageTests(ApiTestCase):
    def test_invalid_json_is_500(self) -> None:
        resp = self.client.post("/api/webhook", content=b"{not json", headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 500)
        self.assertIn("Error processing message", resp.text)

    def test_missing_sections_still_200(self) -> None:
        resp = self.client.post("/api/webhook", json={"object": "whatsapp_business_account"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, "No entries found")
        self.assertEqual(self.messenger.sent, [])

    def test_help_reply_is_sent(self) -> None:
        resp = self.post("ayuda")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, "Message processed successfully")
        self.assertEqual(self.messenger.sent[-1][0], SELLER)
        self.assertIn("Bienvenido", self.messenger.sent[-1][1])
        self.assertEqual([e.message for e in self.app.state.message_log.for_sender(SELLER)], ["ayuda"])

    def test_upload_end_to_end(self) -> None:
        for text in ("subir producto", "Esmeralda 2ct", "Verde intenso", "$2,500", "Anillo", "+573001234567"):
            self.assertEqual(self.post(text).status_code, 200)

        # not visible to catalog readers before the photo arrives
        self.assertEqual(self.client.get("/api/products").json(), [])

        self.post(image={"url": "https://t/abc.jpg", "mime_type": "image/jpeg"})
        self.assertIn("Producto agregado exitosamente", self.messenger.sent[-1][1])
        self.assertIsNone(self.app.state.store.get(SELLER))

        catalog = self.client.get("/api/products").json()
        self.assertEqual(len(catalog), 1)
        product = catalog[0]
        self.assertEqual(product["name"], "Esmeralda 2ct")
        self.assertEqual(Decimal(str(product["price"])), Decimal("2500"))
        self.assertEqual(product["whatsapp_number"], "+573001234567")
        self.assertTrue(product["image_url"].startswith("https://api.test/api/images/product_1_"))

        filename = product["image_url"].rsplit("/", 1)[1]
        image = self.client.get(f"/api/images/{filename}")
        self.assertEqual(image.status_code, 200)
        self.assertEqual(image.content, b"\xff\xd8photo")
        self.assertEqual(image.headers["content-disposition"], f'inline; filename="{filename}"')

    def test_failed_download_keeps_hidden_product(self) -> None:
        self.http.get.return_value = mock.Mock(status_code=200, content=b"")
        for text in ("subir", "Esmeralda", "Verde", "100", "omitir", "+57"):
            self.post(text)
        self.post(image={"url": "https://t/abc"})
        self.assertIn("error al procesar la imagen", self.messenger.sent[-1][1])
        self.assertEqual(self.client.get("/api/products").json(), [])
        self.assertEqual(len(self.app.state.products.find_all()), 1)


class ImagesAndHealthTests(ApiTestCase):
    def test_missing_image_is_404(self) -> None:
        self.assertEqual(self.client.get("/api/images/nope.jpg").status_code, 404)

    def test_health_endpoints(self) -> None:
        self.assertEqual(self.client.get("/api/webhook/health").json()["status"], "UP")
        self.assertEqual(self.client.get("/api/webhook/test").json()["status"], "active")
        images = self.client.get("/api/images/health")
        self.assertEqual(images.status_code, 200)
        self.assertIn("Image Service is Running", images.text)


if __name__ == "__main__":
    unittest.main()
