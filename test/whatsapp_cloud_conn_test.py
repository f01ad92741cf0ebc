# Manual check of WhatsApp Cloud API credentials: python test/whatsapp_cloud_conn_test.py
# Sends one text to TO_NUMBER using the same settings the bot uses.
import os

from dotenv import load_dotenv


def main() -> None:
    load_dotenv()  # Load environment variables from .env file

    from catalog_bot.config import load_settings
    from catalog_bot.services.whatsapp import WhatsAppMessenger

    to_number = os.getenv("TO_NUMBER")
    if not all([os.getenv("WHATSAPP_PHONE_NUMBER_ID"), os.getenv("WHATSAPP_ACCESS_TOKEN"), to_number]):
        print("Missing WhatsApp environment variables.")
        return

    try:
        messenger = WhatsAppMessenger(load_settings())
    except Exception as exc:
        print(f"WhatsApp settings could not be loaded: {exc}")
        return

    if messenger.send_text(to_number, "👋 Prueba de conexión del catálogo Esmeraldas"):
        print("WhatsApp Cloud API message sent.")
    else:
        print("WhatsApp Cloud API test failed, see log output.")


if __name__ == "__main__":
    main()
