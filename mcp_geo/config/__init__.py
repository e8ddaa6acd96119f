"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application, renderer and server settings
- logging: Structured logging configuration (stderr only)
"""
