"""
cross_lang_proof/emit_proof.py

ClaimPay Cross-Language Proof — Python Emitter
==============================================

Signs ONE claim id with a deterministic key secret, then dumps every
intermediate value to proof_bundle.json:

    - claim_id            (the string the payer chose)
    - scale_hex           (SCALE(claim_id): compact length || utf8)
    - digest_hex          (BLAKE2b-256 of scale bytes — what is signed)
    - public_key_hex      (compressed secp256k1 key, 33 bytes)
    - signature_hex       (r || s || v, 65 bytes)
    - record_hex          (SCALE of the unredeemed claim record, value 100)

Any other implementation reads the bundle and independently:
    1. re-encodes claim_id and compares scale_hex
    2. re-hashes and compares digest_hex
    3. recovers the public key from (signature, digest)

libsecp256k1 signs with RFC 6979 nonces, so the bundle is reproducible.

Usage:
    cd cross_lang_proof
    python emit_proof.py
"""

import json
from pathlib import Path

from claimpay.core.codec import claim_digest, encode_str
from claimpay.core.crypto import Secp256k1KeyManager
from claimpay.core.models import Claim


# FIXED 32-byte secret → deterministic key → reproducible bundle.
# This is NOT a security key.
_PROOF_SECRET = bytes(range(1, 33))
_CLAIM_ID     = "fbc2cc1b-ca79-4a85-a13d-e6eeb194ef0c"


def build_bundle() -> dict:
    key       = Secp256k1KeyManager.from_private_bytes(_PROOF_SECRET)
    digest    = claim_digest(_CLAIM_ID)
    signature = key.sign_digest(digest)
    recovered = Secp256k1KeyManager.recover_compressed(signature, digest)
    record    = Claim(public_key=key.public_key, value=100)

    return {
        "claim_id":       _CLAIM_ID,
        "scale_hex":      encode_str(_CLAIM_ID).hex(),
        "digest_hex":     digest.hex(),
        "public_key_hex": key.public_key_hex,
        "signature_hex":  signature.hex(),
        "recovers":       recovered == key.public_key,
        "record_hex":     record.to_scale().hex(),
    }


def main() -> None:
    bundle = build_bundle()
    out    = Path(__file__).parent / "proof_bundle.json"
    out.write_text(json.dumps(bundle, indent=2) + "\n", encoding="utf-8")

    for name, value in bundle.items():
        print(f"  {name:<16} {value}")
    print(f"\n✅ Wrote {out}")


if __name__ == "__main__":
    main()
