import uuid


def new_id() -> str:
    """Opaque row identifier (UUID4 string), generated client-side."""
    return str(uuid.uuid4())
