"""Shared utilities: logging, retry policy and the Whisk credential store."""
