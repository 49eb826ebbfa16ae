"""
Shared utilities for cloud state import.
"""
