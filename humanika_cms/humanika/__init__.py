"""Humanika CMS: approval workflow and asset lifecycle."""
__version__ = "0.1.0"
