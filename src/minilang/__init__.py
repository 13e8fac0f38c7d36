"""
minilang: a single-pass syntax analyser and type checker for a small
imperative teaching language (assignment, if, while, until, for, call).
"""

__version__ = "0.1.0"
