"""s3cache - CI build cache stored in an S3 bucket.

Restores the best matching cache entry for a primary key and its fallback
keys, and saves newly produced paths under the primary key.
"""

__version__ = "0.1.0"
