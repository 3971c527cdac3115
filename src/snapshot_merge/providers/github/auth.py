import os
import subprocess

from ...errors import ConfigurationError

TOKEN_ENV_VARS = ("HYALINE_CONFIG_GITHUB_TOKEN", "GITHUB_TOKEN")


def select_auth_token() -> str:
    token = os.getenv(TOKEN_ENV_VARS[0])
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            check=False,
            capture_output=True,
            text=True,
        )
        token = (result.stdout or "").strip()
        if result.returncode == 0 and token:
            return token
    except FileNotFoundError:
        pass

    token = os.getenv(TOKEN_ENV_VARS[1])
    if token:
        return token

    raise ConfigurationError(
        "No GitHub token found. Set HYALINE_CONFIG_GITHUB_TOKEN, run "
        "`gh auth login`, or set GITHUB_TOKEN."
    )
