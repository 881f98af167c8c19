"""
Optional OCR capability for key-highlight images.

The extractor takes any callable bytes -> text; tesseract_ocr() builds one
backed by pytesseract when the ocr extra is installed.
"""
import io
import logging

from PIL import Image

import config

logger = logging.getLogger(__name__)


def tesseract_ocr(lang=None):
    """Return an OCR callable, or None when pytesseract/tesseract is unavailable"""
    try:
        import pytesseract
    except ImportError:
        logger.warning("pytesseract not installed; OCR fallback disabled")
        return None

    lang = lang or config.env('ocr_lang', 'eng')

    def read_text(content: bytes) -> str:
        with Image.open(io.BytesIO(content)) as image:
            return pytesseract.image_to_string(image.convert('RGB'), lang=lang)

    return read_text
