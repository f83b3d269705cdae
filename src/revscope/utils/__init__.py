"""Utility modules for revscope."""
