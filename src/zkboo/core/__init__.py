"""Core building blocks: configuration, errors, randomness, views and contexts."""
