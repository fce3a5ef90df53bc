"""
Contracts (data models).

This folder defines the shapes shared by the client, the mocks and callers:
- enums and the ``Transport`` interface (interfaces.py)
- the operation catalog: endpoints, required fields, default profiles (operations.py)
- non-XML payloads such as the bill report (payments.py)
"""
