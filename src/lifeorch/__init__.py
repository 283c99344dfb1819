"""lifeorch — temporal-mode life orchestration on top of Gemini function calling."""

__version__ = "0.1.0"
