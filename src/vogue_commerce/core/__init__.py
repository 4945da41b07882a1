# src/vogue_commerce/core/__init__.py
"""Cross-cutting infrastructure: exceptions, logging and retries."""
