"""Peer-to-peer UDP chat over a compact binary wire format."""

__version__ = "0.1.0"
