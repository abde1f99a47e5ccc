"""
Tests package - Test suite for the admission webhook.

Contains:
- unit/: Unit tests for individual components, no cluster required
"""
