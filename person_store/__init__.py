"""
Person store - asynchronous document-store access layer.

Typed repository over a single MongoDB collection of Person records.
"""

__version__ = "1.0.0"
