"""Packaged configuration defaults and rule tables."""
