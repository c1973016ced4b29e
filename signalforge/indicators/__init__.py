"""Indicator library: one pure function per indicator."""
