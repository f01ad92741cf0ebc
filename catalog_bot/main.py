# catalog_bot/main.py
# ------------------------------------------------------------
# FastAPI surface
#  - GET/POST /api/webhook      Meta verification + inbound WhatsApp messages
#  - GET /api/images/{filename} product images saved by the upload flow
#  - GET /api/products          catalog readers (only products with an image)
#  - health endpoints
# create_app() wires settings, database, dialog engine and WhatsApp client;
# collaborators can be passed in (tests) instead of being built from settings.
# ------------------------------------------------------------
import json
import logging
import threading
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from catalog_bot.config import Settings, load_settings
from catalog_bot.conversation import ConversationStore
from catalog_bot.database import init_db, make_engine, make_session_factory
from catalog_bot.dialog import DialogEngine
from catalog_bot.repository import MessageLogRepository, ProductRepository
from catalog_bot.schemas import ProductOut
from catalog_bot.services.images import ImageStore
from catalog_bot.services.whatsapp import OutboundQueue, WhatsAppMessenger
from catalog_bot.utils import configure_logging
from catalog_bot.webhook import WebhookHandler

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 60


def create_app(
    settings: Optional[Settings] = None,
    *,
    messenger=None,
    images=None,
    store: Optional[ConversationStore] = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url)
    session_factory = make_session_factory(engine)
    products = ProductRepository(session_factory)
    message_log = MessageLogRepository(session_factory)

    messenger = messenger or WhatsAppMessenger(settings)
    images = images or ImageStore(
        settings.upload_dir,
        settings.api_base_url,
        access_token=settings.whatsapp_access_token,
        timeout=settings.http_timeout,
    )
    store = store or ConversationStore(idle_timeout=settings.conversation_idle_minutes * 60)
    outbound = OutboundQueue(messenger, workers=settings.outbound_workers, maxsize=settings.outbound_queue_size)
    dialog = DialogEngine(store, products, images, media=messenger)
    handler = WebhookHandler(dialog, outbound, log=message_log)

    app = FastAPI(title="Esmeraldas Catalog Bot")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.store = store
    app.state.products = products
    app.state.message_log = message_log
    app.state.outbound = outbound
    app.state.images = images

    stop_sweeper = threading.Event()

    def _sweep_loop() -> None:
        while not stop_sweeper.wait(SWEEP_INTERVAL_SECONDS):
            store.sweep()

    @app.on_event("startup")
    def on_startup():
        try:
            init_db(engine)
            logger.info("Database tables ensured on startup.")
        except Exception as e:
            logger.error(f"DB init failed at startup: {e}")
            raise
        outbound.start()
        threading.Thread(target=_sweep_loop, name="conversation-sweeper", daemon=True).start()
        logger.info(f"WhatsApp webhook ready at /api/webhook (API {settings.whatsapp_api_version})")

    @app.on_event("shutdown")
    def on_shutdown():
        stop_sweeper.set()
        outbound.stop()

    # -------------------- WhatsApp webhook -------------------- #
    @app.get("/api/webhook")
    def verify_webhook(
        mode: Optional[str] = Query(None, alias="hub.mode"),
        token: Optional[str] = Query(None, alias="hub.verify_token"),
        challenge: Optional[str] = Query(None, alias="hub.challenge"),
    ):
        logger.info(f"Webhook verification attempt - mode={mode}")
        if mode == "subscribe" and token == settings.whatsapp_verify_token:
            logger.info("Webhook verified successfully")
            return PlainTextResponse(challenge or "")
        logger.warning("Webhook verification failed - invalid token")
        return Response(status_code=403)

    @app.post("/api/webhook")
    async def receive_message(request: Request):
        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError as e:
            logger.error(f"Error parsing webhook payload: {e}")
            return PlainTextResponse(f"Error processing message: {e}", status_code=500)
        status = await run_in_threadpool(handler.handle, payload)
        return PlainTextResponse(status)

    @app.get("/api/webhook/health")
    def webhook_health():
        return {"status": "UP", "service": "Esmeraldas WhatsApp Webhook"}

    @app.get("/api/webhook/test")
    def webhook_test():
        return {
            "status": "active",
            "message": "WhatsApp webhook is running",
            "conversations": len(store),
        }

    # -------------------- images -------------------- #
    @app.get("/api/images/health")
    def images_health():
        return PlainTextResponse("Image Service is Running 📷")

    @app.get("/api/images/{filename}")
    def get_image(filename: str):
        path = images.resolve(filename)
        if path is None:
            return Response(status_code=404)
        return FileResponse(path, headers={"Content-Disposition": f'inline; filename="{filename}"'})

    # -------------------- catalog -------------------- #
    @app.get("/api/products", response_model=List[ProductOut])
    def list_products():
        return products.find_visible()

    return app
