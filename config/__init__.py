"""
Configuration and persisted state (settings, subscriber registry).
"""
