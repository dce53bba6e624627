"""
connect_four.interfaces - User interfaces for Connect Four

The command-line interface used by run.py lives in cli.py.
"""

# Don't import anything here to avoid circular imports
__all__ = []
