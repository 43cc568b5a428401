"""Version reporting and git revision lookup."""

from __future__ import annotations

import os
import shutil
import subprocess

GIT_COMMIT = ""
GIT_DESCRIBE = ""
VERSION = "0.0.1"
PRERELEASE = "alpha"
METADATA = ""


def human_version(
    *,
    version: str = VERSION,
    prerelease: str = PRERELEASE,
    metadata: str = METADATA,
    git_commit: str = GIT_COMMIT,
    git_describe: str = GIT_DESCRIBE,
) -> str:
    """Compose the version parts into a string suitable for display."""
    if git_describe:
        result = git_describe
    else:
        release = prerelease or "dev"
        result = version
        if not result.endswith(f"-{release}"):
            result += f"-{release}"
        if metadata:
            result += f"+{metadata}"

    if git_commit:
        result += f" ({git_commit})"

    if not result.startswith("v"):
        result = f"v{result}"

    return result.replace("'", "")


def git_sha(pack_path: str | os.PathLike) -> str:
    """Return the short git SHA of HEAD for the repository at ``pack_path``.

    Raises FileNotFoundError if the path or the git executable is missing and
    subprocess.CalledProcessError if git fails.
    """
    if not os.path.exists(pack_path):
        raise FileNotFoundError(f"no such file or directory: {os.fspath(pack_path)}")

    git_path = shutil.which("git")
    if git_path is None:
        raise FileNotFoundError("executable file not found in $PATH: git")

    completed = subprocess.run(
        [git_path, "rev-list", "-1", "HEAD"],
        cwd=os.fspath(pack_path),
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout[:7]