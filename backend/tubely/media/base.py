"""
Base classes for media tooling.
The ingestion pipeline depends only on these interfaces, so tests and
alternative bindings can stand in for the ffprobe/ffmpeg processes.
"""
from abc import ABC, abstractmethod
from typing import Tuple

from tubely.media.aspect import AspectClass, classify_dimensions

# Suffix appended to the input path for the fast-start output
PROCESSED_SUFFIX = ".processing"


class MediaProbe(ABC):
    """
    Abstract base class for media inspection.

    Implementations must provide probe(); classify() is derived from it.
    """

    @abstractmethod
    def probe(self, path: str) -> Tuple[int, int]:
        """
        Inspect a local file and return the first stream's dimensions.

        Args:
            path: Local file path

        Returns:
            Tuple of (width, height)

        Raises:
            ProbeError: If the file cannot be inspected
        """
        pass

    def classify(self, path: str) -> AspectClass:
        """
        Classify a local file as landscape, portrait or other.

        Raises:
            ProbeError: If the file cannot be inspected
        """
        width, height = self.probe(path)
        return classify_dimensions(width, height)


class MediaTranscoder(ABC):
    """
    Abstract base class for the fast-start rewrite.

    The input file is never modified. The caller owns the returned file and
    must remove it.
    """

    def output_path_for(self, path: str) -> str:
        """Deterministic output path derived from the input path."""
        return f"{path}{PROCESSED_SUFFIX}"

    @abstractmethod
    def transcode(self, path: str) -> str:
        """
        Rewrite a video so streaming metadata precedes media data.

        Args:
            path: Local input file path

        Returns:
            Path of the processed file (output_path_for(path))

        Raises:
            TranscodeError: If the rewrite fails or produces an empty file
        """
        pass
