"""
Data Models
===========

Pydantic models for tool arguments, render results and the advertised tool schema.
"""
