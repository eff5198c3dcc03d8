"""Minecraft protocol data types, packet framing, text components and a server-list server."""

__version__ = "0.2.0"