# catalog_bot/dialog.py
# ------------------------------------------------------------
# Conversational state machine for sellers
# - Phase 1: classify the text; command intents reset/replace the sender's dialog
# - Phase 2: otherwise advance the current dialog via the (action, step) handler table
# Each handler returns a Turn(next_state, reply); next_state=None ends the dialog.
# ------------------------------------------------------------
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from catalog_bot import replies
from catalog_bot.conversation import (
    DELETE,
    DELETE_CONFIRM,
    DELETE_SELECT_ID,
    EDIT,
    EDIT_SELECT_FIELD,
    EDIT_SELECT_ID,
    EDIT_VALUE,
    UPLOAD,
    UPLOAD_CATEGORY,
    UPLOAD_DESCRIPTION,
    UPLOAD_IMAGE,
    UPLOAD_NAME,
    UPLOAD_PHONE,
    UPLOAD_PRICE,
    ConversationState,
    ConversationStore,
)
from catalog_bot.intents import Intent, classify, normalize
from catalog_bot.models import Product
from catalog_bot.services.images import ImageIngestError
from catalog_bot.utils import format_price, parse_price, parse_product_id

logger = logging.getLogger(__name__)

SKIP_WORD = "omitir"
CONFIRM_WORDS = frozenset({"si", "sí", "yes"})
CANCEL_WORDS = frozenset({"no", "cancelar"})

EDIT_FIELDS = {
    "1": "name",
    "2": "description",
    "3": "price",
    "4": "category",
    "5": "whatsapp_number",
}


class Inbound(NamedTuple):
    text: str  # trimmed, original casing; stored into product fields
    normalized: str  # trimmed + lowercased; compared against command words
    image: Optional[Mapping[str, Any]]


@dataclass
class Turn:
    state: Optional[ConversationState]
    reply: str


Handler = Callable[[ConversationState, Inbound], Turn]


class DialogEngine:
    """
    Drives upload / edit / delete conversations for each sender.

    Collaborators:
      store     ConversationStore
      products  object with save(product), find_by_id(id), find_all(), delete(product)
      images    object with download_and_save_image(url, product_id) -> public url
      media     optional object with resolve_media_url(media_id) -> url, used when an
                inbound image carries only a media id
    """

    def __init__(self, store: ConversationStore, products, images, media=None):
        self._store = store
        self._products = products
        self._images = images
        self._media = media
        self._handlers: Dict[Tuple[str, int], Handler] = {
            (UPLOAD, UPLOAD_NAME): self._upload_name,
            (UPLOAD, UPLOAD_DESCRIPTION): self._upload_description,
            (UPLOAD, UPLOAD_PRICE): self._upload_price,
            (UPLOAD, UPLOAD_CATEGORY): self._upload_category,
            (UPLOAD, UPLOAD_PHONE): self._upload_phone,
            (UPLOAD, UPLOAD_IMAGE): self._upload_image,
            (EDIT, EDIT_SELECT_ID): self._edit_select_id,
            (EDIT, EDIT_SELECT_FIELD): self._edit_select_field,
            (EDIT, EDIT_VALUE): self._edit_value,
            (DELETE, DELETE_SELECT_ID): self._delete_select_id,
            (DELETE, DELETE_CONFIRM): self._delete_confirm,
        }
        self._flow_errors = {EDIT: replies.EDIT_ERROR, DELETE: replies.DELETE_ERROR}

    def dispatch(self, sender: str, text: str, image: Optional[Mapping[str, Any]] = None) -> str:
        with self._store.hold(sender):
            return self._dispatch(sender, text or "", image)

    # ---------------- phase 1: intents ---------------- #
    def _dispatch(self, sender: str, text: str, image: Optional[Mapping[str, Any]]) -> str:
        intent = classify(text)

        if intent is Intent.WELCOME:
            self._store.put(sender, ConversationState())
            return replies.WELCOME
        if intent is Intent.UPLOAD:
            self._store.put(sender, ConversationState(step=UPLOAD_NAME, action=UPLOAD))
            return replies.ASK_NAME
        if intent is Intent.EDIT:
            return self._start_pick(sender, EDIT)
        if intent is Intent.DELETE:
            return self._start_pick(sender, DELETE)
        if intent is Intent.LIST:
            return self._list_catalog()

        state = self._store.get(sender)
        if state is None:
            return replies.WELCOME

        # ---------------- phase 2: advance ---------------- #
        handler = self._handlers.get((state.action, state.step))
        if handler is None:
            return replies.WELCOME

        msg = Inbound(text=text.strip(), normalized=normalize(text), image=image)
        try:
            turn = handler(state, msg)
        except Exception as e:
            if state.action not in self._flow_errors:
                raise
            logger.error(f"Error in {state.action} flow for {sender}: {e}")
            self._store.remove(sender)
            return self._flow_errors[state.action]

        if turn.state is None:
            self._store.remove(sender)
        else:
            self._store.put(sender, turn.state)
        return turn.reply

    def _start_pick(self, sender: str, action: str) -> str:
        try:
            products = self._products.find_all()
        except Exception as e:
            logger.error(f"Error listing products for {action}: {e}")
            self._store.remove(sender)
            return replies.LIST_ERROR

        if not products:
            # a command never carries the previous dialog over
            self._store.remove(sender)
            return replies.NO_PRODUCTS_EDIT if action == EDIT else replies.NO_PRODUCTS_DELETE

        if action == EDIT:
            self._store.put(sender, ConversationState(step=EDIT_SELECT_ID, action=EDIT))
            return replies.product_picklist("✏️ *Editar Producto*", products, "editar")
        self._store.put(sender, ConversationState(step=DELETE_SELECT_ID, action=DELETE))
        return replies.product_picklist("🗑️ *Borrar Producto*", products, "borrar")

    def _list_catalog(self) -> str:
        try:
            products = self._products.find_all()
        except Exception as e:
            logger.error(f"Error listing products: {e}")
            return replies.LIST_ERROR
        if not products:
            return replies.NO_PRODUCTS_CATALOG
        return replies.catalog(products)

    # ---------------- upload ---------------- #
    def _upload_name(self, state: ConversationState, msg: Inbound) -> Turn:
        return Turn(state.advance(UPLOAD_DESCRIPTION, name=msg.text), replies.ASK_DESCRIPTION.format(name=msg.text))

    def _upload_description(self, state: ConversationState, msg: Inbound) -> Turn:
        return Turn(state.advance(UPLOAD_PRICE, description=msg.text), replies.ASK_PRICE)

    def _upload_price(self, state: ConversationState, msg: Inbound) -> Turn:
        price = parse_price(msg.text)
        if price is None:
            return Turn(state, replies.INVALID_PRICE)
        return Turn(state.advance(UPLOAD_CATEGORY, price=price), replies.ASK_CATEGORY.format(price=format_price(price)))

    def _upload_category(self, state: ConversationState, msg: Inbound) -> Turn:
        category = replies.DEFAULT_CATEGORY if msg.normalized == SKIP_WORD else msg.text
        return Turn(state.advance(UPLOAD_PHONE, category=category), replies.ASK_PHONE)

    def _upload_phone(self, state: ConversationState, msg: Inbound) -> Turn:
        return Turn(state.advance(UPLOAD_IMAGE, whatsapp_number=msg.text), replies.ASK_IMAGE)

    def _upload_image(self, state: ConversationState, msg: Inbound) -> Turn:
        if not msg.image:
            return Turn(state, replies.IMAGE_REQUIRED)

        product = Product(
            name=state.name,
            description=state.description,
            price=state.price,
            category=state.category,
            whatsapp_number=state.whatsapp_number,
            image_url=None,
            available=True,
            stock=1,
        )
        try:
            saved = self._products.save(product)
            logger.info(f"Product saved with id {saved.id}, fetching image")

            transient_url = self._transient_url(msg.image)
            public_url = self._images.download_and_save_image(transient_url, saved.id)

            saved.image_url = public_url
            self._products.save(saved)
            logger.info(f"Product #{saved.id} updated with image {public_url}")
        except Exception as e:
            # the pre-saved product (image_url NULL) stays; it is hidden from catalog readers
            logger.error(f"Error processing product image: {e}")
            return Turn(None, replies.UPLOAD_IMAGE_ERROR.format(error=e))

        return Turn(
            None,
            replies.UPLOAD_SUCCESS.format(
                name=state.name,
                price=format_price(state.price),
                description=state.description,
            ),
        )

    def _transient_url(self, image: Mapping[str, Any]) -> str:
        url = image.get("url")
        if not url and image.get("id") and self._media is not None:
            url = self._media.resolve_media_url(image["id"])
        if not url:
            raise ImageIngestError("La imagen no trae una URL de descarga")
        return url

    # ---------------- edit ---------------- #
    def _edit_select_id(self, state: ConversationState, msg: Inbound) -> Turn:
        product_id = parse_product_id(msg.text)
        if product_id is None:
            return Turn(state, replies.INVALID_ID)
        product = self._products.find_by_id(product_id)
        if product is None:
            return Turn(state, replies.PRODUCT_NOT_FOUND)
        return Turn(
            state.advance(EDIT_SELECT_FIELD, product_id=product_id),
            replies.EDIT_FIELD_MENU.format(name=product.name),
        )

    def _edit_select_field(self, state: ConversationState, msg: Inbound) -> Turn:
        field = EDIT_FIELDS.get(msg.normalized)
        if field is None:
            return Turn(state, replies.INVALID_OPTION)
        return Turn(
            state.advance(EDIT_VALUE, field_to_edit=field),
            replies.FIELD_SELECTED.format(prompt=replies.FIELD_PROMPTS[field]),
        )

    def _edit_value(self, state: ConversationState, msg: Inbound) -> Turn:
        product = self._products.find_by_id(state.product_id)
        if product is None:
            return Turn(None, replies.FLOW_CANCELLED_MISSING)

        field = state.field_to_edit
        if field == "price":
            price = parse_price(msg.text)
            if price is None:
                return Turn(state, replies.INVALID_PRICE)
            product.price = price
        elif field == "category":
            product.category = replies.DEFAULT_CATEGORY if msg.normalized == SKIP_WORD else msg.text
        else:
            setattr(product, field, msg.text)

        saved = self._products.save(product)
        return Turn(None, replies.EDIT_SUCCESS.format(name=saved.name, price=format_price(saved.price)))

    # ---------------- delete ---------------- #
    def _delete_select_id(self, state: ConversationState, msg: Inbound) -> Turn:
        product_id = parse_product_id(msg.text)
        if product_id is None:
            return Turn(state, replies.INVALID_ID)
        product = self._products.find_by_id(product_id)
        if product is None:
            return Turn(state, replies.PRODUCT_NOT_FOUND)
        return Turn(
            state.advance(DELETE_CONFIRM, product_id=product_id),
            replies.DELETE_CONFIRM.format(name=product.name, price=format_price(product.price)),
        )

    def _delete_confirm(self, state: ConversationState, msg: Inbound) -> Turn:
        if msg.normalized in CONFIRM_WORDS:
            product = self._products.find_by_id(state.product_id)
            if product is None:
                return Turn(None, replies.FLOW_CANCELLED_MISSING)
            self._products.delete(product)
            return Turn(None, replies.DELETE_SUCCESS)
        if msg.normalized in CANCEL_WORDS:
            return Turn(None, replies.DELETE_CANCELLED)
        return Turn(state, replies.DELETE_UNRECOGNIZED)
