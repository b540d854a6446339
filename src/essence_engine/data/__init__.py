"""Bundled trait and enemy content."""
