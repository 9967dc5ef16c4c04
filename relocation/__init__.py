"""Relocation package __init__.py"""
from .dispatcher import DispatchTally, MoveOutcome, MoveRequest, RelocationDispatcher

__all__ = ["DispatchTally", "MoveOutcome", "MoveRequest", "RelocationDispatcher"]
