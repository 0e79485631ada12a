import uuid


def generate_uid() -> str:
    """Return a random, globally unique identifier (UUID4) as a string."""
    return str(uuid.uuid4())
