"""Lexis analysers: feature extraction, scoring and explanatory builders."""
