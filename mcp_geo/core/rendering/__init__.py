"""
Rendering Engine
===============

Asymptote subprocess rendering with temporary file handling.
"""
