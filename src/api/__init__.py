"""HTTP surface of the paper trading service."""
