"""Shared helpers for Blade CLI commands."""
