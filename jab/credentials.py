import os
from pathlib import Path

from dotenv import dotenv_values, set_key

CREDENTIALS_FILENAME = "credentials"


def get_credentials_path(jab_dir):
    return Path(jab_dir) / CREDENTIALS_FILENAME


def load_jab_credentials(jab_dir):
    """Load <jab_dir>/credentials into os.environ.

    Holds secrets the dump tools read from the environment (PGPASSWORD,
    MYSQL_PWD, ...) so they stay out of the registry and shell history.
    Format: dotenv KEY=VALUE lines. Values already in the environment win.
    """
    credentials_file = get_credentials_path(jab_dir)
    if not credentials_file.exists():
        return {}

    creds = {key: value for key, value in dotenv_values(credentials_file).items() if value is not None}
    for key, value in creds.items():
        if key not in os.environ:
            os.environ[key] = value
    return creds


def save_jab_credential(jab_dir, key, value):
    """Save or update a single credential in <jab_dir>/credentials.

    Values are written quoted so passwords containing '#', spaces or quotes
    read back unchanged.
    """
    credentials_file = get_credentials_path(jab_dir)
    credentials_file.parent.mkdir(parents=True, exist_ok=True)
    credentials_file.touch(mode=0o600, exist_ok=True)

    set_key(credentials_file, key, value, quote_mode="always")
    credentials_file.chmod(0o600)
    os.environ[key] = value
