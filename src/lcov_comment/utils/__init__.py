"""Utilities shared across lcov-comment."""
