"""Test helpers for trackerwire."""
