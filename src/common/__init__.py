"""Shared logging, HTTP and timestamp helpers."""
