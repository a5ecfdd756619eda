"""
Item recognizer implementations.
"""

from itemscan.recognizers.base import Recognizer
from itemscan.recognizers.catalog_recognizer import CatalogRecognizer
from itemscan.recognizers.gemini_recognizer import GeminiRecognizer
from itemscan.recognizers.orchestrator import RecognitionOrchestrator

__all__ = [
    "Recognizer",
    "CatalogRecognizer",
    "GeminiRecognizer",
    "RecognitionOrchestrator",
]
