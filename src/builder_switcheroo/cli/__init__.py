"""
CLI Subpackage.

Contains the application entry-points and command handlers for the command-line interface.

Modules:
    - ``__main__``: The argparse definition and dispatcher.
    - ``handlers/*``: Implementation modules for specific CLI actions (check, fix, reporting).
"""
