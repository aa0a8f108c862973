"""
slotbooker - availability and booking engine for a service marketplace.
"""

__version__ = "0.1.0"
