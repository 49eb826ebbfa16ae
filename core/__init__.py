"""
Core state model, attribute accessors, filters and refresh orchestration.
"""
