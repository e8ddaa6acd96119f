"""
Test Suite
==========

Test suite matching the mcp_geo/ package structure.

Test Categories:
- unit: Unit tests for individual components, asy subprocess mocked
- integration: MCP protocol tests, in process and over the stdio transport
"""
