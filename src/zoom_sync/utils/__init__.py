"""Checksum helpers shared by the protocol families."""
