# catalog_bot/intents.py
# ------------------------------------------------------------
# Text-only command detection. Never looks at conversation state.
# Rules are checked in order; the first keyword hit wins.
# ------------------------------------------------------------
from enum import Enum


class Intent(str, Enum):
    WELCOME = "welcome"
    UPLOAD = "upload"
    EDIT = "edit"
    DELETE = "delete"
    LIST = "list"
    NONE = "none"


_KEYWORD_RULES = (
    (Intent.WELCOME, ("inicio", "empezar", "ayuda")),
    (Intent.UPLOAD, ("subir", "agregar")),
    (Intent.EDIT, ("editar", "modificar")),
    (Intent.DELETE, ("borrar", "eliminar")),
)


def normalize(body: str) -> str:
    return (body or "").strip().lower()


def classify(body: str) -> Intent:
    t = normalize(body)
    for intent, keywords in _KEYWORD_RULES:
        if any(k in t for k in keywords):
            return intent
    if "ver" in t and "producto" in t:
        return Intent.LIST
    return Intent.NONE
