"""Adapters for the web boundary and the chat backend."""
