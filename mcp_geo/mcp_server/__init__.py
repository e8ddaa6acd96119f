"""
MCP Server Implementation
========================

Model Context Protocol server implementation providing Asymptote rendering.

Tools provided:
- renderGeometricImage: Render Asymptote code to an SVG or PNG image
"""
