"""
HTTP clients for the external APIs the skills wrap.
"""

from .gemini import GeminiImageClient
from .jina import JinaClient
from .linear import LinearClient

__all__ = ["GeminiImageClient", "JinaClient", "LinearClient"]
