"""
Long-running background services.
"""
