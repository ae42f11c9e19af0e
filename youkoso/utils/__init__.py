"""
Shared infrastructure: logging with credential masking, TOML settings
persistence and background task execution.
"""
