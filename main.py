"""
Youkoso - My Studio Attendance Front-End
========================================

Main entry point for the Youkoso application. Youkoso keeps the user's
appearance theme and My Studio login in a local settings file and maintains
an authenticated session with the My Studio attendance API.

Author: Youkoso Project
"""

import sys
import os
import logging

# ============================================================================
# PYTHONW COMPATIBILITY - NULL STREAM SAFETY
# ============================================================================
# When launched via pythonw.exe, sys.stdout and sys.stderr are None, which
# breaks logging.StreamHandler. Replace None streams with devnull wrappers.
if sys.stdout is None:
    sys.stdout = open(os.devnull, 'w')
if sys.stderr is None:
    sys.stderr = open(os.devnull, 'w')

current_dir = os.path.dirname(os.path.abspath(__file__))

# ============================================================================
# LOGGING INITIALIZATION
# ============================================================================
# Initialize logging BEFORE importing the UI so module-level loggers created
# during import already route through the masking filter.
from youkoso.utils.logger import setup_logging, shutdown_logging


def main():
    """
    Main application entry point.

    1. Configures logging
    2. Creates the main window, which loads the settings file
    3. Runs the GUI event loop until the window is closed
    4. Flushes the log on the way out
    """
    setup_logging()
    logger = logging.getLogger(__name__)

    from youkoso.ui.app import App

    try:
        logger.info("Initializing Youkoso application")
        logger.info(f"Python version: {sys.version}")
        logger.info(f"Working directory: {current_dir}")

        app = App()
        logger.info("Application window created successfully")

        # Blocks until the window is closed
        app.mainloop()

    except Exception as e:
        logger.critical(f"Fatal error in main application: {e}", exc_info=True)
        raise
    finally:
        logger.info("Application shutdown")
        shutdown_logging()


# ============================================================================
# APPLICATION ENTRY POINT
# ============================================================================
if __name__ == "__main__":
    main()
