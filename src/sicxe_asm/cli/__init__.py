"""
SIC/XE Assembler Command-Line Interface
=======================================

This package provides the command-line tool of the assembler:

- **sicasm**: SIC/XE two-pass assembler

The tool is a Click-based CLI application with help text and unified
error reporting (see errors.py).
"""

__all__ = ["sicasm"]
