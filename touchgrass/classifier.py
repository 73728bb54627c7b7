"""
Gemini-backed grass classifier.
"""
import logging
from typing import Optional

# Google Gemini for image analysis
import google.generativeai as genai

from .config import load_api_key
from .errors import ClassifierError

logger = logging.getLogger(__name__)


class GeminiGrassClassifier:
    """Sends a prompt plus a JPEG frame to Gemini and returns the reply text."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash",
                 timeout_s: Optional[float] = None):
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.model = genai.GenerativeModel(model_name)
        # Bounds the HTTP request itself so a timed-out call frees its thread
        self.request_options = {"timeout": timeout_s} if timeout_s else None

    def classify(self, prompt: str, image_b64: str) -> str:
        # Create content with inline image data as per Gemini API docs
        response = self.model.generate_content([
            {
                "text": prompt
            },
            {
                "inline_data": {
                    "mime_type": "image/jpeg",
                    "data": image_b64  # Already base64 encoded
                }
            }
        ], request_options=self.request_options)
        text = response.text
        if not text:
            raise ClassifierError("Gemini returned an empty response")
        return text


def create_classifier(model_name: str, timeout_s: Optional[float] = None) -> Optional[GeminiGrassClassifier]:
    """Build the classifier, or None if no API key is configured."""
    api_key = load_api_key()
    if not api_key:
        logger.warning("GOOGLE_API_KEY not found. Grass detection is disabled.")
        return None
    logger.info("🔍 Using Gemini model: %s", model_name)
    return GeminiGrassClassifier(api_key, model_name, timeout_s)
