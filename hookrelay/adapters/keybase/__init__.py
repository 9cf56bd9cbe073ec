"""Keybase chat backend."""

from hookrelay.adapters.keybase.chat import KeybaseChat

__all__ = ["KeybaseChat"]
