"""
Lexis Shared Module
===================

Common utilities, models, and configuration management shared by the
Lexis analyzer, its reports, and its command-line interface.
"""

from shared.config import LexisConfig, get_config

__all__ = ["LexisConfig", "get_config"]
