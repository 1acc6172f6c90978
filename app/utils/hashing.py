import hashlib


def normalize_address(address: str) -> str:
    return " ".join(address.lower().split())


def address_hash(address: str) -> str:
    return hashlib.sha256(normalize_address(address).encode()).hexdigest()
