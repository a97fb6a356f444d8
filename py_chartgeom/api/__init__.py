"""HTTP layout service."""
