"""
utils/ - Shared Helpers
=======================
Logging setup and naming conventions used across layers.
"""
