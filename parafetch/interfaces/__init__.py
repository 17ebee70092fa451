"""
Public interfaces for ParaFetch.
"""
