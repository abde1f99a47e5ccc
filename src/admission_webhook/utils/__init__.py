"""Utility helpers for the admission webhook."""
