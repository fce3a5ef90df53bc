"""
Integration clients.

- real_http/: talks to the live or sandbox gateway over httpx
- mocks/: in-memory gateway used for development and tests
"""
