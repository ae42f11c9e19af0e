"""
Core Application Logic
======================

This package contains the foundational business logic for the Youkoso
application: the settings document and its controller, the credential vault,
the theme preference and the authenticated session manager.
"""
