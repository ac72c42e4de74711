"""
Receipt OCR for the expense tracker.
Sends receipt photos to OCR.space (or a local Tesseract install) and feeds
the returned text to the receipt interpreter.
"""

import io
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np
import pytesseract
import requests
from PIL import Image

from .config import AppConfig
from .models import ReceiptGuess
from .parsing import ReceiptInterpreter

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.webp', '.bmp', '.tif', '.tiff'}


class OcrError(Exception):
    """Raised when a receipt image could not be turned into text."""


def validate_receipt_image(filename: str, size: int, max_bytes: int) -> Tuple[bool, str]:
    """Validate an uploaded receipt image before sending it to OCR.

    Args:
        filename: Uploaded file name
        size: File size in bytes
        max_bytes: Largest accepted size

    Returns:
        Tuple of (is_valid, error_message)
    """
    file_ext = Path(filename).suffix.lower()
    if file_ext not in SUPPORTED_EXTENSIONS:
        return False, f"File type '{file_ext}' not supported. Allowed types: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"

    if size <= 0:
        return False, "Uploaded file is empty"

    if size > max_bytes:
        return False, f"File size ({size:,} bytes) exceeds maximum allowed size ({max_bytes:,} bytes)"

    return True, ""


class OcrSpaceClient:
    """Client for the OCR.space parse/image endpoint."""

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None):
        """Initialize the OCR.space client.

        Args:
            config: Application configuration holding the API key and endpoint
            session: Optional requests session, mainly for connection reuse
        """
        self.api_key = config.ocr_space_api_key
        self.url = config.ocr_space_url
        self.language = config.ocr_language
        self.timeout = config.ocr_timeout
        self.session = session or requests.Session()
        self.logger = logger

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def extract_text(self, image_bytes: bytes, filename: str = "receipt.jpg") -> str:
        """Extract text from a receipt image.

        Args:
            image_bytes: Raw image content
            filename: Original filename, used to pick the image MIME type

        Returns:
            Parsed text, empty if the provider found none

        Raises:
            OcrError: If the key is missing or the provider call fails
        """
        if not self.api_key:
            raise OcrError("OCR API key not configured")

        mime_type = mimetypes.guess_type(filename)[0] or "image/jpeg"
        encoded = base64.b64encode(image_bytes).decode("ascii")

        payload = {
            "apikey": self.api_key,
            "base64Image": f"data:{mime_type};base64,{encoded}",
            "language": self.language,
            "isOverlayRequired": "false",
        }

        try:
            response = self.session.post(self.url, data=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            self.logger.error(f"OCR.space request failed: {str(e)}")
            raise OcrError(f"OCR request failed: {str(e)}") from e
        except ValueError as e:
            self.logger.error("OCR.space returned a non-JSON response")
            raise OcrError("Invalid response from OCR provider") from e

        if not data:
            raise OcrError("Empty response from OCR provider")

        if data.get("IsErroredOnProcessing"):
            message = data.get("ErrorMessage") or "unknown error"
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            self.logger.error(f"OCR.space could not process {filename}: {message}")
            raise OcrError(f"OCR provider error: {message}")

        results = data.get("ParsedResults") or []
        text = (results[0].get("ParsedText") if results else None) or ""

        self.logger.info(f"OCR.space returned {len(text)} characters for {filename}")
        return text


class TesseractOcrEngine:
    """Local OCR using Tesseract with OpenCV preprocessing."""

    def __init__(self, language: str = "eng"):
        """Initialize the Tesseract engine.

        Args:
            language: Tesseract language code
        """
        self.language = language
        self.logger = logger

        try:
            pytesseract.get_tesseract_version()
            self.tesseract_available = True
            self.logger.info("Tesseract OCR is available")
        except pytesseract.TesseractNotFoundError as e:
            self.tesseract_available = False
            self.logger.warning(f"Tesseract OCR not available: {e}")

    @property
    def available(self) -> bool:
        return self.tesseract_available

    def extract_text(self, image_bytes: bytes, filename: str = "receipt.jpg") -> str:
        """Extract text from a receipt image.

        Args:
            image_bytes: Raw image content
            filename: Original filename, only used for logging

        Returns:
            Recognised text

        Raises:
            OcrError: If Tesseract is missing or the image cannot be read
        """
        if not self.tesseract_available:
            raise OcrError("OCR not available - Tesseract not installed")

        try:
            image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
            cv_image = cv2.cvtColor(np.array(image), cv2.COLOR_RGB2BGR)
            processed_image = self._preprocess_image(cv_image)
            text = pytesseract.image_to_string(processed_image, lang=self.language)
        except OSError as e:
            self.logger.error(f"Could not read image {filename}: {str(e)}")
            raise OcrError(f"Could not read image: {str(e)}") from e
        except pytesseract.TesseractError as e:
            self.logger.error(f"Tesseract failed on {filename}: {str(e)}")
            raise OcrError(f"OCR failed: {str(e)}") from e

        self.logger.info(f"Tesseract returned {len(text)} characters for {filename}")
        return text

    def _preprocess_image(self, image: np.ndarray) -> np.ndarray:
        """Preprocess image for better OCR accuracy.

        Args:
            image: Input image as numpy array

        Returns:
            Preprocessed image
        """
        try:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            blurred = cv2.GaussianBlur(gray, (5, 5), 0)
            thresh = cv2.adaptiveThreshold(
                blurred, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2
            )
            kernel = np.ones((1, 1), np.uint8)
            return cv2.morphologyEx(thresh, cv2.MORPH_CLOSE, kernel)

        except cv2.error as e:
            self.logger.warning(f"Image preprocessing failed, using original: {str(e)}")
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def build_ocr_engine(config: AppConfig):
    """Create the OCR engine named by the configuration."""
    if config.ocr_provider == "tesseract":
        return TesseractOcrEngine(language=config.ocr_language)
    return OcrSpaceClient(config)


class ReceiptScanner:
    """Runs OCR on a receipt photo and interprets the text."""

    def __init__(self, engine, interpreter: Optional[ReceiptInterpreter] = None):
        """Initialize the scanner.

        Args:
            engine: Object with an extract_text(image_bytes, filename) method
            interpreter: Receipt text interpreter, a default one if omitted
        """
        self.engine = engine
        self.interpreter = interpreter or ReceiptInterpreter()
        self.logger = logger

    def scan(self, image_bytes: bytes, filename: str = "receipt.jpg") -> ReceiptGuess:
        """Scan a receipt.

        Args:
            image_bytes: Raw image content
            filename: Original filename

        Returns:
            ReceiptGuess to pre-fill the expense form

        Raises:
            OcrError: If text extraction fails
        """
        text = self.engine.extract_text(image_bytes, filename)
        guess = self.interpreter.interpret(text)

        if guess.is_empty:
            self.logger.info(f"Nothing usable found on receipt {filename}")
        return guess
