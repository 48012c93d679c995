"""Jargoyle backend: OIDC sign-in, local accounts and the document API."""
