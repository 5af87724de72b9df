"""Warden — identity registry and bearer-token service.

Keeps a registry of named identities, backs each one with a pluggable
credential provider, and issues signed bearer tokens that gate the
protected parts of the API.
"""

__version__ = "0.1.0"
