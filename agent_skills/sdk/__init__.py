"""
SDK wrappers for agent skills.

Provides cost-recording access to the OpenAI image endpoints.
"""

from .openai_images import GuardedOpenAIImages

__all__ = ["GuardedOpenAIImages"]
