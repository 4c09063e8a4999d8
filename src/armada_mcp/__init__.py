"""ARMADA Validation MCP Server.

Multi-phase lyric validation against cultural corridors: novelty, forbidden
words, corridor authenticity and an aggregate ARM score, streamed over
WebSocket or exposed as MCP tools.
"""

__version__ = "0.1.0"
