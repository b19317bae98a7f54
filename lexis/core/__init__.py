"""Lexis core: data models, signature tables and the analysis engine."""
