"""
Gas measurement harness for a synthetic-asset protocol.

This package escalates the number of synths registered with a deployed protocol
one at a time, replays a fixed mint/exchange/burn sequence at every level, and
reports the averaged transaction gas per operation category.
"""

from .main import main

__all__ = ["main"]
