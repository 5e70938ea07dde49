"""Send one prompt to OpenAI, DeepSeek and Gemini concurrently and compare the answers."""

__version__ = "0.1.0"
