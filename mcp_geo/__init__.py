"""
Asymptote Geometry MCP Server
=============================

A Model Context Protocol (MCP) server that renders precise geometric images
from Asymptote code by delegating to the external ``asy`` compiler.

This package provides:
- MCP protocol implementation exposing the renderGeometricImage tool
- Subprocess-based Asymptote rendering with temp-file plumbing
- A small CLI that bootstraps the stdio server
"""

__version__ = "0.1.0"
__author__ = "mcp-geo contributors"
