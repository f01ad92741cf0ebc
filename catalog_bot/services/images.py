# catalog_bot/services/images.py
# ------------------------------------------------------------
# Image ingest: download a transient WhatsApp media URL and keep the bytes
# under UPLOAD_DIR so the product gets a stable public URL
#   {API_BASE_URL}/api/images/product_{id}_{8 hex}{ext}
# ------------------------------------------------------------
import logging
import os
import uuid
from typing import Optional
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"  # WhatsApp photos are JPEG unless the URL says otherwise
_META_MEDIA_HOSTS = ("fbsbx.com", "facebook.com")


class ImageIngestError(RuntimeError):
    """Raised when a product image cannot be downloaded or written."""


def image_extension(url: str) -> str:
    if ".jpg" in url or ".jpeg" in url:
        return ".jpg"
    if ".png" in url:
        return ".png"
    if ".webp" in url:
        return ".webp"
    return DEFAULT_EXTENSION


def _is_meta_host(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in _META_MEDIA_HOSTS)


class ImageStore:
    def __init__(
        self,
        upload_dir: str,
        api_base_url: str,
        *,
        access_token: Optional[str] = None,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        self.upload_dir = upload_dir
        self.api_base_url = api_base_url.rstrip("/")
        self._access_token = access_token
        self._timeout = timeout
        self._http = session or requests.Session()

    def public_url(self, filename: str) -> str:
        return f"{self.api_base_url}/api/images/{filename}"

    def resolve(self, filename: str) -> Optional[str]:
        """Local path for a served file name, or None if it is missing or escapes the upload dir."""
        root = os.path.realpath(self.upload_dir)
        path = os.path.realpath(os.path.join(root, filename))
        if os.path.dirname(path) != root or not os.path.isfile(path):
            return None
        return path

    def download_and_save_image(self, url: str, product_id: int) -> str:
        """
        Fetch `url` and store it as product_{product_id}_<uuid8><ext>.
        Returns the public URL; raises ImageIngestError on any download or filesystem failure.
        """
        logger.info(f"Downloading WhatsApp image for product #{product_id}: {url}")
        if not os.path.isdir(self.upload_dir):
            try:
                os.makedirs(self.upload_dir, exist_ok=True)
            except OSError as e:
                raise ImageIngestError(f"Error al crear el directorio de imágenes: {e}") from e
            logger.info(f"Upload directory created: {os.path.abspath(self.upload_dir)}")

        filename = f"product_{product_id}_{uuid.uuid4().hex[:8]}{image_extension(url)}"
        target = os.path.join(self.upload_dir, filename)

        headers = {}
        if self._access_token and _is_meta_host(url):
            # lookaside.fbsbx.com media links require the same bearer token as the Graph API
            headers["Authorization"] = f"Bearer {self._access_token}"
        try:
            resp = self._http.get(url, headers=headers, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise ImageIngestError(f"Error al descargar la imagen: {e}") from e
        if not resp.content:
            raise ImageIngestError("No se pudo descargar la imagen desde WhatsApp")

        try:
            with open(target, "wb") as f:
                f.write(resp.content)
        except OSError as e:
            raise ImageIngestError(f"Error al guardar la imagen: {e}") from e

        public_url = self.public_url(filename)
        logger.info(f"Saved image to {target} public_url={public_url}")
        return public_url
