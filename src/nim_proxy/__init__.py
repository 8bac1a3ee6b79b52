"""
NIM Proxy Gateway - proxy chat-completions OpenAI vers NVIDIA NIM et ElectronHub.
"""

__version__ = "1.0.0"
