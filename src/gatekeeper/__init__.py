"""Gatekeeper: multi-provider bearer token verification."""
