"""Core validation logic: corridors, phases, scoring, forbidden scan and models.

This module is framework-agnostic. It has no dependency on aiohttp, MCP,
or any server framework. Both the WebSocket server and the FastMCP tool
surface import from here.
"""
