"""Numeric guards, line selectors and text rendering for forecast reports."""
