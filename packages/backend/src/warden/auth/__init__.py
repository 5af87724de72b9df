"""Identities, credential providers and bearer tokens.

Learn: Two halves that only meet at token issuance:
1. Identities → validation pipeline → store, backed by pluggable providers
2. Tokens → signed, self-contained claims checked on every request

A token never leads back to the store; its claims are the whole story
until it expires.
"""
