"""
Youkoso - My Studio Attendance Front-End
========================================

Desktop front-end for the My Studio attendance service. The package is split
into:

- core: settings document, credentials, theme state and session management
- integrations: the My Studio HTTP client
- utils: logging, settings persistence and background workers
- ui: the CustomTkinter window
"""

__version__ = "0.1.0"
