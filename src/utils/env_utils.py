import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def get_env(name, default=None):
    """Retrieve a setting from the environment, treating blank values as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_env_int(name, default):
    value = get_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")
