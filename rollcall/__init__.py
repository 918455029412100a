"""Rollcall: conference check-in, attendance identity and admission control."""
__version__ = "1.0.0"
