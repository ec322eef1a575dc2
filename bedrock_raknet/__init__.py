"""RakNet offline message codecs, receive bookkeeping, and a minimal Bedrock ping/handshake client and server."""

__version__ = "0.1.0"