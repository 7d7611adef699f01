"""Scaffold, customise, build and run .NET projects from Python."""

__version__ = "0.1.0"
