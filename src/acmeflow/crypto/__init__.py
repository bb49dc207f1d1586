"""Key management utilities.

Exports the algorithm registry, key pair generation, HMAC import,
signing, and PEM import/export.
"""

from acmeflow.crypto.algorithms import AlgorithmProperties, get_algorithm_properties
from acmeflow.crypto.keys import (
    CryptoKey,
    KeyPair,
    generate_key_pair,
    import_hmac_key,
    sign,
    verify,
)
from acmeflow.crypto.pem import (
    export_private_key_pem,
    export_public_key_pem,
    extract_first_pem_object,
    import_key_pair_from_pem_private_key,
)
from acmeflow.crypto.provider import CryptoProvider, DefaultCryptoProvider

__all__ = [
    "AlgorithmProperties",
    "CryptoKey",
    "CryptoProvider",
    "DefaultCryptoProvider",
    "KeyPair",
    "export_private_key_pem",
    "export_public_key_pem",
    "extract_first_pem_object",
    "generate_key_pair",
    "get_algorithm_properties",
    "import_hmac_key",
    "import_key_pair_from_pem_private_key",
    "sign",
    "verify",
]
