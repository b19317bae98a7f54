"""Lexis output: Rich console rendering and file reports."""
