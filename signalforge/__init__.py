"""SignalForge — technical indicators, strategy consensus and smart-money structure."""

__version__ = "0.1.0"
