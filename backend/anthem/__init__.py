"""Anthem users store layer."""
