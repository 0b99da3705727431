"""Cantina point of sale."""
