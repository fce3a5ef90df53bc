"""
Protocol policy.

Everything that decides whether a request or response is acceptable:
- signing.py: canonical string + signature
- request_builder.py: defaults, signing, required-field checks, XML body
- response_wrappers.py: XML parsing + status, identity and signature checks
- errors.py: the error taxonomy raised by all of the above
"""
