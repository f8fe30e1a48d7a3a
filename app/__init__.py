"""
Typed Asset Store API

A REST backend for storing and retrieving images, integer-array datasets
and 3D model files on local disk or S3-compatible object storage.
"""

__version__ = "1.0.0"
