"""Persistence, command surface and outer adapters for reliability diagrams."""
