"""
Agent tool server support code.

The ignore boundary lives in :mod:`agent_tools.ignore`.
"""

__version__ = "0.1.0"
