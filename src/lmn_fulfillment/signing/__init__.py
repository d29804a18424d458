"""Counter-signature dispatch and signer selection."""

from __future__ import annotations

from lmn_fulfillment.signing.dispatcher import SignatureDispatcher, decode_document
from lmn_fulfillment.signing.protocols import ISignatureService
from lmn_fulfillment.signing.signers import Signer, SignerDirectory
from lmn_fulfillment.signing.signwell import SignWellClient

__all__ = [
    "ISignatureService",
    "SignWellClient",
    "SignatureDispatcher",
    "Signer",
    "SignerDirectory",
    "decode_document",
]
