"""Charger code utilities: decoding scanned payloads and printing codes."""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from .config import AppConfig

_logger = logging.getLogger(__name__)

_BOM = "\ufeff"


@dataclass(slots=True)
class QRCodeManager:
    """Decode charger codes with OpenCV/pyzbar and generate them with :mod:`segno`."""

    config: AppConfig

    def is_available(self) -> bool:
        try:
            import segno  # type: ignore  # noqa: F401  # pragma: no cover - optional dependency
        except Exception:
            return False
        return True

    @staticmethod
    def decode_qr_payload(data: bytes | bytearray | str) -> Optional[str]:
        """Return the decoded text of a scanned code, or ``None`` if there is none.

        Surrounding whitespace and a leading byte-order mark are removed;
        payloads that are not valid UTF-8 are rejected.
        """

        if isinstance(data, (bytes, bytearray)):
            try:
                text = bytes(data).decode("utf-8")
            except UnicodeDecodeError:
                _logger.debug("Discarding scanned payload that is not UTF-8")
                return None
        elif isinstance(data, str):
            text = data
        else:
            return None

        text = text.lstrip(_BOM).strip()
        return text or None

    @staticmethod
    def payload_digest(text: str) -> str:
        """Return the SHA-256 digest of a code's text."""

        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def save_png(self, text: str, path: str) -> str:
        """Write a code representing ``text`` to ``path`` and return its digest."""

        try:
            import segno  # type: ignore  # pragma: no cover - optional dependency
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RuntimeError("QR generation requires segno; install segno") from exc

        qr = segno.make(text, error=self.config.qr_error_correction)
        qr.save(path, scale=self.config.qr_scale, border=self.config.qr_border)
        return self.payload_digest(text)

    def decode_frame(self, frame) -> Optional[str]:  # pragma: no cover - requires optional deps
        """Return the first charger code found in a BGR image array."""

        try:
            import cv2  # type: ignore
            from pyzbar import pyzbar  # type: ignore
        except Exception:
            return None

        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        for candidate in (gray, cv2.GaussianBlur(gray, (5, 5), 0), binary):
            symbols = pyzbar.decode(candidate)
            if symbols:
                return self.decode_qr_payload(symbols[0].data)
        return None

    def read_from_file(self, path: str) -> Optional[str]:  # pragma: no cover - requires optional deps
        """Decode a charger code from an image file."""

        try:
            import cv2  # type: ignore
        except Exception:
            return None

        image = cv2.imread(path)
        if image is None:
            _logger.debug("Could not read image %r", path)
            return None
        return self.decode_frame(image)


__all__ = ["QRCodeManager"]
