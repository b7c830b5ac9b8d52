"""Helpers around the GitHub CLI (gh) for credentials and API hosts."""

import logging
import platform
import subprocess

from branch_pruner.exceptions import GhCliError

logger = logging.getLogger(__name__)

_NOT_INSTALLED_MARKERS = ("command not found", "not found", "cannot find")
_NOT_AUTHENTICATED_MARKERS = (
    "gh auth login",
    "not authenticated",
    "no github token",
    "please authenticate",
    "to get started with github cli",
)


def install_instructions(system: str | None = None) -> str:
    system = system or platform.system()

    if system == "Windows":
        steps = (
            "To install GitHub CLI on Windows:\n"
            "  winget install --id GitHub.cli\n"
            "  or: choco install gh"
        )
    elif system == "Darwin":
        steps = (
            "To install GitHub CLI on macOS:\n"
            "  brew install gh\n"
            "  or: sudo port install gh"
        )
    elif system == "Linux":
        steps = (
            "To install GitHub CLI on Linux:\n"
            "  Ubuntu/Debian: sudo apt install gh\n"
            "  Fedora/RHEL:   sudo dnf install gh\n"
            "  Arch Linux:    sudo pacman -S github-cli"
        )
    else:
        steps = "To install GitHub CLI, visit: https://cli.github.com/"

    return (
        "GitHub CLI (gh) is not installed.\n\n"
        f"{steps}\n\n"
        "Alternatively set GITHUB_TOKEN or pass --token."
    )


def auth_instructions() -> str:
    return (
        "GitHub CLI is not authenticated.\n\n"
        "To authenticate with GitHub:\n"
        "  1. Run: gh auth login\n"
        "  2. Choose GitHub.com or GitHub Enterprise Server\n"
        "  3. Follow the prompts to complete authentication\n\n"
        "For more details, see: https://cli.github.com/manual/gh_auth_login"
    )


def is_not_installed(return_code: int | None, stderr: str) -> bool:
    if return_code == 127:
        return True
    lowered = stderr.lower()
    return any(marker in lowered for marker in _NOT_INSTALLED_MARKERS)


def is_not_authenticated(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in _NOT_AUTHENTICATED_MARKERS)


def _run_gh(*args: str, timeout_sec: float = 10.0) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            ["gh", *args],
            capture_output=True,
            text=True,
            timeout=timeout_sec,
            check=False,
        )
    except FileNotFoundError as e:
        raise GhCliError("not-installed", "GitHub CLI (gh) is not installed.", install_instructions()) from e
    except subprocess.TimeoutExpired as e:
        raise GhCliError("unknown", f"gh {' '.join(args)} timed out") from e


def get_gh_token(hostname: str | None = None) -> str:
    """
    Read the token gh is logged in with.

    Raises:
        GhCliError: If gh is missing or not authenticated
    """
    args = ["auth", "token"]
    if hostname and hostname != "github.com":
        args += ["--hostname", hostname]

    result = _run_gh(*args)
    token = result.stdout.strip()
    if result.returncode == 0 and token:
        return token

    logger.debug("gh auth token exited %s: %s", result.returncode, result.stderr.strip())
    if is_not_installed(result.returncode, result.stderr):
        raise GhCliError("not-installed", "GitHub CLI (gh) is not installed.", install_instructions())
    # gh auth token exits 1 when nobody is logged in
    if result.returncode == 1 or is_not_authenticated(result.stdout + result.stderr):
        raise GhCliError("not-authenticated", "GitHub CLI is not authenticated.", auth_instructions())
    raise GhCliError("unknown", f"gh auth token failed: {result.stderr.strip()}")


def api_url_for_host(host: str | None) -> str:
    """Map a GitHub host to its REST API root."""
    if not host or host == "github.com":
        return "https://api.github.com"
    return f"https://{host}/api/v3"

