"""
External service clients. Currently only My Studio.
"""
