"""
Shared utilities: configuration, error handling and events.
"""
