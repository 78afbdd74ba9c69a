"""
Hoontr Shared Module
=====================

Configuration, structured logging, console presentation and run-level
models shared by the Hoontr components.
"""

from shared.config import HoontrConfig

__all__ = ["HoontrConfig"]
