import secrets


def generate_reference_number(prefix: str) -> str:
    """Human-facing reference such as BKG-3F9A01C2 or TIX-77B0E4AA"""
    return f'{prefix}-{secrets.token_hex(4).upper()}'
