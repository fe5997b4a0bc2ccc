"""Basic KYC field validation."""

WALLET_ADDRESS_LENGTH = 42


class KycError(ValueError):
    """Raised when KYC details fail validation."""


def validate_kyc(legal_name: str, wallet_address: str, signature_hash: str) -> None:
    """Validate identity details supplied alongside a deployment.

    Checks that no field is blank and that the wallet looks like an
    Ethereum address ("0x" prefix, 42 characters). Raises KycError.
    """
    if not legal_name.strip():
        raise KycError("Legal name cannot be empty.")

    if not wallet_address.strip():
        raise KycError("Wallet address cannot be empty.")

    if not signature_hash.strip():
        raise KycError("Signature or hash cannot be empty.")

    if not wallet_address.startswith("0x") or len(wallet_address) != WALLET_ADDRESS_LENGTH:
        raise KycError(
            "Invalid wallet address format. "
            f"Expected '0x' prefix and {WALLET_ADDRESS_LENGTH} characters total."
        )
