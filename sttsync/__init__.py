"""
sttsync - speech-to-text API settings synchronization

Keeps a multi-provider STT API configuration consistent between an
interactive settings form and the persisted settings file.

Quick Start:
    pip install -e .
    sttsync show
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
