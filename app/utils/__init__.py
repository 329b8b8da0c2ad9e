"""Utility helpers for FlixCatalog.

Submodules:
- aws: boto3 S3 wrapper (presign, HEAD, upload, delete)
- object_keys: canonical object keys from stored values
- mime: extension → Content-Type tables
- token_cleanup: scheduled refresh-token expiry sweep
"""

__all__: list[str] = []
