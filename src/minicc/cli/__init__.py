"""
minicc Command-Line Interface
=============================

- **mcc**: compile a program given on the command line to x86-64 assembly

The tool is a Click-based CLI application; errors are converted to exit
codes in one place (errors.py).
"""

__all__ = ["mcc"]
