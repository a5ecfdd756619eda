"""
Abstract base class for item recognizers.
"""

from abc import ABC, abstractmethod
from typing import List

from itemscan.core.types import ImageInput, RecognitionResult, SearchOptions


class Recognizer(ABC):
    """Abstract base class for all recognizers."""

    @abstractmethod
    def recognize(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        """
        Identify the items shown in an image.

        Args:
            image: The uploaded image
            options: Search options (max_results, include_variants, ...)

        Returns:
            Candidate matches, possibly empty. May raise on failure.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this recognizer for logging."""
        pass
