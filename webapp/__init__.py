"""
HTTP trigger surface.
"""
