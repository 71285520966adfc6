"""Vault — sealed container codec for the credential file.

Security Note:
    The KDF cost parameters come from configuration and are not stored in
    the container; files can only be opened with the parameters they were
    sealed with.
"""

from .crypto import open_container, seal_container, open_file, seal_file
from .config import KdfParams, PassConfig

__all__ = [
    "open_container",
    "seal_container",
    "open_file",
    "seal_file",
    "KdfParams",
    "PassConfig",
]
