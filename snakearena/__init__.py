"""Multiplayer snake arena over WebSockets: protocol, game loop, server and sample client."""

__version__ = "0.1.0"
__all__ = ["__version__"]