# catalog_bot/replies.py
# ------------------------------------------------------------
# Fixed Spanish reply vocabulary sent back to sellers.
# WhatsApp renders *bold*; values are interpolated as-is.
# ------------------------------------------------------------
from typing import Iterable

from catalog_bot.utils import format_price

WELCOME = (
    "👋 *Bienvenido a Esmeraldas Victory*\n\n"
    "Comandos disponibles:\n\n"
    "📦 *Subir producto* - Agregar un nuevo producto al catálogo\n"
    "✏️ *Editar producto* - Modificar un producto existente\n"
    "🗑️ *Borrar producto* - Eliminar un producto del catálogo\n"
    "📋 *Ver productos* - Listar todos los productos\n"
    "❓ *Ayuda* - Ver esta ayuda\n\n"
    "Escribe un comando para comenzar."
)

# ---------------- upload ---------------- #
ASK_NAME = (
    "📱 *Subir nuevo producto*\n\n"
    "Por favor, envíame la siguiente información:\n\n"
    "1️⃣ **Nombre del producto**\n"
    "Ejemplo: Esmeralda Colombiana 2ct\n\n"
    "Responde con el nombre del producto."
)
ASK_DESCRIPTION = (
    "✅ Nombre guardado: {name}\n\n"
    "2️⃣ **Descripción del producto**\n"
    "Ejemplo: Esmeralda natural de origen colombiano, color verde intenso, 2 quilates\n\n"
    "Responde con la descripción."
)
ASK_PRICE = (
    "✅ Descripción guardada\n\n"
    "3️⃣ **Precio del producto** (en USD)\n"
    "Ejemplo: 2500\n\n"
    "Responde con el precio (solo números)."
)
INVALID_PRICE = "❌ Precio inválido. Por favor, ingresa solo números.\nEjemplo: 2500"
ASK_CATEGORY = (
    "✅ Precio guardado: ${price}\n\n"
    "4️⃣ **Categoría** (opcional)\n"
    "Ejemplo: Anillo, Collar, Pendientes, Sin categoría\n\n"
    "Responde con la categoría o escribe 'omitir'."
)
ASK_PHONE = (
    "✅ Categoría guardada\n\n"
    "5️⃣ **Número de WhatsApp para contacto**\n"
    "Ejemplo: +573001234567\n\n"
    "Responde con el número de WhatsApp."
)
ASK_IMAGE = (
    "✅ Número guardado\n\n"
    "6️⃣ **Imagen del producto**\n"
    "Por favor, envía la imagen del esmeralda."
)
IMAGE_REQUIRED = "❌ Por favor, envía una imagen del producto para terminar la publicación."
UPLOAD_SUCCESS = (
    "✅ *¡Producto agregado exitosamente!*\n\n"
    "📦 **{name}**\n"
    "💰 Precio: ${price}\n"
    "📝 {description}\n"
    "📷 Imagen descargada y guardada\n\n"
    "Tu producto ya está visible en el catálogo.\n\n"
    "👉 Para agregar otro producto, escribe 'subir producto'"
)
UPLOAD_IMAGE_ERROR = (
    "❌ Hubo un error al procesar la imagen. "
    "Por favor, intenta nuevamente escribiendo 'subir producto'.\n\n"
    "Error: {error}"
)

DEFAULT_CATEGORY = "Sin categoría"

# ---------------- listings ---------------- #
NO_PRODUCTS_EDIT = "📭 No hay productos disponibles. Primero agrega un producto con 'subir producto'."
NO_PRODUCTS_DELETE = "📭 No hay productos disponibles."
NO_PRODUCTS_CATALOG = "📭 No hay productos disponibles en el catálogo."
LIST_ERROR = "❌ Error al listar productos. Intenta nuevamente."

# ---------------- edit ---------------- #
PRODUCT_NOT_FOUND = "❌ Producto no encontrado. Responde con un ID válido o escribe 'ayuda'."
INVALID_ID = "❌ ID inválido. Responde con un número (ejemplo: 1)"
FLOW_CANCELLED_MISSING = "❌ Producto no encontrado. El flujo se ha cancelado."
EDIT_FIELD_MENU = (
    "✅ Producto seleccionado: *{name}*\n\n"
    "¿Qué campo quieres editar?\n\n"
    "1️⃣ Nombre\n"
    "2️⃣ Descripción\n"
    "3️⃣ Precio\n"
    "4️⃣ Categoría\n"
    "5️⃣ Número de WhatsApp\n\n"
    "Responde con el número de la opción (1-5)."
)
INVALID_OPTION = "❌ Opción inválida. Responde con un número del 1 al 5."
FIELD_PROMPTS = {
    "name": "Responde con el nuevo **nombre** del producto:",
    "description": "Responde con la nueva **descripción** del producto:",
    "price": "Responde con el nuevo **precio** (solo números, ejemplo: 2500):",
    "category": "Responde con la nueva **categoría** (o escribe 'omitir'):",
    "whatsapp_number": "Responde con el nuevo **número de WhatsApp** (ejemplo: +573001234567):",
}
FIELD_SELECTED = "✅ Campo seleccionado\n\n{prompt}"
EDIT_SUCCESS = (
    "✅ *Producto actualizado exitosamente!*\n\n"
    "📦 **{name}**\n"
    "💰 Precio: ${price}\n\n"
    "Para continuar, puedes:\n"
    "• Editar otro producto: 'editar producto'\n"
    "• Ver catálogo: 'ver productos'\n"
    "• Subir nuevo producto: 'subir producto'"
)
EDIT_ERROR = "❌ Error en el flujo de edición. Intenta nuevamente con 'editar producto'."

# ---------------- delete ---------------- #
DELETE_CONFIRM = (
    "⚠️ *Confirmar eliminación*\n\n"
    "¿Estás seguro de que quieres borrar este producto?\n\n"
    "📦 *{name}*\n"
    "💰 Precio: ${price}\n\n"
    "Responde:\n"
    "✅ **'sí'** para confirmar\n"
    "❌ **'no'** para cancelar"
)
DELETE_SUCCESS = (
    "✅ *Producto borrado exitosamente!*\n\n"
    "El producto ha sido eliminado del catálogo.\n\n"
    "Para continuar:\n"
    "• Ver catálogo: 'ver productos'\n"
    "• Subir nuevo producto: 'subir producto'"
)
DELETE_CANCELLED = (
    "❌ *Eliminación cancelada*\n\n"
    "El producto no ha sido borrado.\n\n"
    "Para volver al inicio, escribe 'ayuda'."
)
DELETE_UNRECOGNIZED = (
    "❌ Respuesta no reconocida.\n\n"
    "Responde:\n"
    "✅ **'sí'** para confirmar la eliminación\n"
    "❌ **'no'** para cancelar"
)
DELETE_ERROR = "❌ Error en el flujo de eliminación. Intenta nuevamente con 'borrar producto'."

_RULE = "━━━━━━━━━━━━━━━━\n"


def product_picklist(title: str, products: Iterable, verb: str) -> str:
    """Numbered list used by edit/delete: '*ID 3*: name' + price, then the ask for an id."""
    lines = [f"{title}\n\n", "Productos disponibles:\n\n"]
    for p in products:
        lines.append(f"*ID {p.id}*: {p.name}\n💰 Precio: ${format_price(p.price)}\n\n")
    lines.append(f"Responde con el **ID** del producto que quieres {verb}.")
    return "".join(lines)


def catalog(products: Iterable) -> str:
    lines = ["📋 *Catálogo de Productos*\n\n"]
    for p in products:
        lines.append(_RULE)
        lines.append(f"*{p.name}*\n")
        lines.append(f"💰 Precio: ${format_price(p.price)}\n")
        if p.description:
            lines.append(f"📝 {p.description}\n")
        if p.category:
            lines.append(f"🏷️ Categoría: {p.category}\n")
        lines.append(f"🆔 ID: {p.id}\n")
        lines.append(_RULE + "\n")
    lines.append("💡 Para editar o borrar, usa los comandos:")
    lines.append("\n✏️ 'editar producto'\n🗑️ 'borrar producto'")
    return "".join(lines)
