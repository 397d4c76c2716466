from .gemini import GeminiClient
from .gateway import AIGatewayClient

__all__ = ("GeminiClient", "AIGatewayClient")
