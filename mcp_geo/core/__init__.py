"""
Core Business Logic
==================

Rendering of Asymptote code through the external asy compiler.
"""
