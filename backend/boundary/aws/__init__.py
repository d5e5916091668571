"""
AWS boundary modules.

Exports: S3DatasetClient
"""

from .s3_client import S3DatasetClient

__all__ = ["S3DatasetClient"]
