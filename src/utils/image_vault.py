"""
Local image vault
Decodes inline data URIs into files under the image directory and hands back
browser-visible URLs of the form /<prefix>/<key>_<epochMs>.<ext>
"""
import base64
import binascii
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from models.errors import ImageIOFailure, InvalidImageEncoding
from utils.identifiers import now_ms

DATA_URI_PREFIX = "data:image/"
DATA_URI_RE = re.compile(r"^data:image/(\w+);base64,(.+)$", re.DOTALL)

RETENTION_REPLACE = "replace"
RETENTION_PRESERVE = "preserve"


def is_data_uri(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(DATA_URI_PREFIX)


def safe_key(s: str) -> str:
    s = s.strip()
    s = re.sub(r"[^a-zA-Z0-9._-]+", "_", s)
    s = re.sub(r"_+", "_", s)
    s = s.strip("._")
    return s or "image"


@dataclass
class DecodedImage:
    extension: str
    data: bytes


def decode_data_uri(data_uri: str) -> DecodedImage:
    match = DATA_URI_RE.match(data_uri or "")
    if not match:
        raise InvalidImageEncoding("Invalid base64 image format")
    subtype, payload = match.groups()
    extension = "jpg" if subtype.lower() == "jpeg" else subtype
    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageEncoding("Invalid base64 image format") from e
    return DecodedImage(extension=extension, data=data)


class ImageVault:
    def __init__(
        self,
        images_dir: Path,
        url_prefix: str = "/images",
        retention: str = RETENTION_REPLACE,
        clock: Callable[[], int] = now_ms,
    ):
        self.images_dir = Path(images_dir)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.retention = retention
        self._clock = clock
        self._lock = threading.Lock()
        self._last_stamp = 0

    def ensure_dir(self) -> None:
        self.images_dir.mkdir(parents=True, exist_ok=True)

    def is_vault_url(self, url: Optional[str]) -> bool:
        return bool(url) and url.startswith(self.url_prefix + "/")

    def url_for(self, file_name: str) -> str:
        return f"{self.url_prefix}/{file_name}"

    def path_for_url(self, url: str) -> Optional[Path]:
        """Vault file behind a URL, or None when the URL is not a plain vault file name"""
        if not self.is_vault_url(url):
            return None
        file_name = url[len(self.url_prefix) + 1:]
        if not file_name or "/" in file_name or "\\" in file_name or file_name in (".", ".."):
            return None
        return self.images_dir / file_name

    def _next_name(self, key: str, extension: str) -> str:
        # Caller holds self._lock
        stamp = max(self._clock(), self._last_stamp + 1)
        while (self.images_dir / f"{key}_{stamp}.{extension}").exists():
            stamp += 1
        self._last_stamp = stamp
        return f"{key}_{stamp}.{extension}"

    def store(self, image: DecodedImage, key: str) -> str:
        """Write decoded bytes as <key>_<epochMs>.<ext> and return the vault URL"""
        key = safe_key(key)
        with self._lock:
            self.ensure_dir()
            file_name = self._next_name(key, image.extension)
            file_path = self.images_dir / file_name
            try:
                file_path.write_bytes(image.data)
            except OSError as e:
                raise ImageIOFailure(f"Cannot write image {file_path}: {e}") from e
        logger.info(f"Image stored: {file_name} ({len(image.data)} bytes)")
        return self.url_for(file_name)

    def save_data_uri(self, data_uri: str, key: str) -> str:
        return self.store(decode_data_uri(data_uri), key)

    def remove(self, url: Optional[str], force: bool = False) -> bool:
        """Unlink the file behind a vault URL when retention allows; True if a file was removed"""
        file_path = self.path_for_url(url) if url else None
        if file_path is None:
            return False
        if self.retention != RETENTION_REPLACE and not force:
            logger.info(f"[Preserved] Skipped deletion of image: {url}")
            return False
        try:
            file_path.unlink()
        except FileNotFoundError:
            logger.warning(f"Image already missing: {url}")
            return False
        except OSError as e:
            raise ImageIOFailure(f"Cannot delete image {file_path}: {e}") from e
        logger.info(f"Image removed: {url}")
        return True
