from __future__ import annotations


class ScanError(Exception):
    """Base class for scan failures."""


class NavigationError(ScanError):
    """The target page could not be loaded at all."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Could not load {url}: {reason}")
        self.url = url
        self.reason = reason


class HeuristicEvaluationError(ScanError):
    """In-page signal extraction failed. Recovered with default signals."""


class ScreenshotCaptureError(ScanError):
    """A single screenshot could not be captured. Recovered as None."""


class ProductPageError(ScanError):
    """The product sub-pass failed. Recovered as found=False."""


class AiProviderError(ScanError):
    """The AI assessment call failed. Recovered as ai_assessment=None."""
