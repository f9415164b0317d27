"""
ClaimPay: Basic Usage Example

Demonstrates:
- Key generation (client side)
- Creating a claim with a deposit
- Redeeming it through a relayer
- Double-redemption rejection
"""

from claimpay import CallContext, ClaimContract, InMemoryCustody, Secp256k1KeyManager


def main():
    """Basic ClaimPay usage."""

    print("=" * 60)
    print("ClaimPay: Basic Usage Example")
    print("=" * 60)
    print()

    # 1️⃣ Contract over an in-memory store
    custody  = InMemoryCustody()
    contract = ClaimContract.new(custody=custody)
    print("1️⃣ Contract ready (in-memory store)")
    print()

    # 2️⃣ The recipient's key. Only the public half goes to the payer.
    key = Secp256k1KeyManager.generate()
    print(f"2️⃣ Recipient key: {key.public_key_hex}")
    print()

    # 3️⃣ Payer deposits 100 under claim-1
    result = contract.create(CallContext("alice", 100), "claim-1", key.public_key)
    print(f"3️⃣ create('claim-1', value=100) → {result}")
    print(f"   Custody balance: {custody.balance}")
    print()

    # 4️⃣ Key holder signs the claim id and hands the signature to a relayer
    signature = key.sign_claim("claim-1")
    print(f"4️⃣ Signature: {signature.hex()[:32]}...")
    result = contract.redeem(CallContext("relayer"), "claim-1", signature)
    print(f"   redeem('claim-1') by relayer → {result}")
    print(f"   Payouts: {custody.payouts}")
    print()

    # 5️⃣ The same signature cannot be used twice
    result = contract.redeem(CallContext("mallory"), "claim-1", signature)
    print(f"5️⃣ redeem('claim-1') again → {result}")
    print()

    print("=" * 60)
    print("✅ Basic usage complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
