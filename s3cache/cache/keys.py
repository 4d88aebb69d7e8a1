"""Cache key collation and storage key derivation.

A cache key is the caller's logical version string. A storage key is the
object store identifier derived from a cache key and one local path:

    "{cache_key}:{path}"               (no namespace)
    "{namespace}/{cache_key}:{path}"   (with namespace)
"""

import posixpath
import unicodedata


STORAGE_KEY_SEPARATOR = ":"
NAMESPACE_SEPARATOR = "/"


def collation_key(key: str) -> str:
    """Fold a cache key for exact-match comparison.

    Decomposes to NFKD, drops combining marks and case-folds, so keys
    that differ only by accent or case compare equal.

    Example:
        >>> collation_key("Build-Ä")
        'build-a'
    """
    decomposed = unicodedata.normalize("NFKD", key)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def is_exact_key_match(key: str, cache_key: str | None) -> bool:
    """Return True when ``cache_key`` is present and matches ``key``.

    Args:
        key: The primary key
        cache_key: A matched or restored key, possibly absent

    Example:
        >>> is_exact_key_match("build-a", "Build-Ä")
        True
        >>> is_exact_key_match("build-a", None)
        False
    """
    return bool(cache_key) and collation_key(cache_key) == collation_key(key)


def normalize_cache_path(path: str) -> str:
    """Normalize a cache path as written by the caller.

    Only the textual form is normalized (separators, "." segments and
    trailing slashes); the path is not resolved against the filesystem,
    so the same input yields the same storage key on every runner.

    Raises:
        ValueError: If the path is empty
    """
    cleaned = path.strip().replace("\\", "/")
    if not cleaned:
        raise ValueError("path cannot be empty")
    return posixpath.normpath(cleaned)


def build_storage_key(cache_key: str, path: str, namespace: str = "") -> str:
    """Build the object store key for one cache path.

    Args:
        cache_key: Caller-supplied cache key
        path: Local path as given in the pipeline inputs
        namespace: Optional prefix isolating repositories in a shared bucket

    Returns:
        Storage key unique per (cache_key, path) within the namespace

    Raises:
        ValueError: If cache_key or path is empty

    Example:
        >>> build_storage_key("v1", "dist/")
        'v1:dist'
        >>> build_storage_key("v1", "./out/app.bin", namespace="1234")
        '1234/v1:out/app.bin'
    """
    if not cache_key:
        raise ValueError("cache_key cannot be empty")

    storage_key = f"{cache_key}{STORAGE_KEY_SEPARATOR}{normalize_cache_path(path)}"
    if namespace:
        return f"{namespace.strip(NAMESPACE_SEPARATOR)}{NAMESPACE_SEPARATOR}{storage_key}"
    return storage_key
