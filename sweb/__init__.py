"""Asyncio HTTP/1.x framework with trie routing, functional middleware and OpenAPI docs."""

__version__ = "0.1.1"