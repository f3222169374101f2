# netbox_installer/steps/source.py
# -*- coding: utf-8 -*-
"""
Fetches the NetBox source tree with git and checks out the requested ref.

Git runs as root on a tree owned by the service user, so every command
inside the checkout marks it as a safe directory.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from common.command_utils import get_symbols, log_message, run_elevated_command
from common.file_utils import ensure_directory_owned_by
from netbox_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

LATEST = "latest"
DEFAULT_BRANCH_FALLBACKS = ("main", "master")


class SourceRefNotFoundError(RuntimeError):
    """The requested tag, branch or commit does not exist in the repository."""

    def __init__(self, ref: str, repo_dir: str):
        self.ref = ref
        self.repo_dir = repo_dir
        super().__init__(
            f"Git ref '{ref}' was not found in {repo_dir} (tried '{ref}' and 'origin/{ref}')."
        )


def _git(
    args: List[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    check: bool = True,
    capture_output: bool = False,
) -> subprocess.CompletedProcess:
    repo_dir = app_settings.install_dir
    return run_elevated_command(
        ["git", "-c", f"safe.directory={repo_dir}", "-C", repo_dir] + args,
        app_settings,
        check=check,
        capture_output=capture_output,
        current_logger=current_logger,
    )


def _rev_parse_ok(
    rev: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    result = _git(
        ["rev-parse", "--verify", "--quiet", rev],
        app_settings,
        current_logger,
        check=False,
        capture_output=True,
    )
    return result.returncode == 0


def verify_ref(
    ref: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Return the first of `ref` and `origin/<ref>` that names a commit.

    Raises:
        SourceRefNotFoundError: If neither does.
    """
    for candidate in (ref, f"origin/{ref}"):
        if _rev_parse_ok(f"{candidate}^{{commit}}", app_settings, current_logger):
            return candidate
    raise SourceRefNotFoundError(ref, app_settings.install_dir)


def resolve_default_branch(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    The remote's default branch, from origin/HEAD, falling back to main and
    then master.

    Raises:
        SourceRefNotFoundError: If none of them exist.
    """
    result = _git(
        ["symbolic-ref", "--short", "refs/remotes/origin/HEAD"],
        app_settings,
        current_logger,
        check=False,
        capture_output=True,
    )
    head = (result.stdout or "").strip() if result.returncode == 0 else ""
    if head.startswith("origin/"):
        return head[len("origin/"):]

    for branch in DEFAULT_BRANCH_FALLBACKS:
        if _rev_parse_ok(f"refs/remotes/origin/{branch}", app_settings, current_logger):
            return branch
    raise SourceRefNotFoundError(LATEST, app_settings.install_dir)


def checkout_ref(
    ref: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Check out a tag, branch or commit. Remote branches become a local branch
    reset to the remote; anything else is checked out detached.

    The ref is verified before anything changes in the working tree.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    candidate = verify_ref(ref, app_settings, logger_to_use)

    if _rev_parse_ok(f"refs/remotes/origin/{ref}", app_settings, logger_to_use):
        _git(["checkout", "-B", ref, f"origin/{ref}"], app_settings, logger_to_use)
    else:
        _git(["checkout", "--detach", candidate], app_settings, logger_to_use)
    log_message(
        f"{symbols.get('success', '✅')} Checked out '{ref}'.",
        "success",
        logger_to_use,
        app_settings,
    )


def update_to_latest(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Check out the default branch and fast-forward it."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    branch = resolve_default_branch(app_settings, logger_to_use)
    log_message(
        f"{symbols.get('info', 'ℹ️')} Tracking default branch '{branch}'.",
        "info",
        logger_to_use,
        app_settings,
    )
    _git(["checkout", branch], app_settings, logger_to_use)
    _git(["pull", "--ff-only"], app_settings, logger_to_use)


def _directory_is_empty_or_absent(path: Path) -> bool:
    if not path.exists():
        return True
    if not path.is_dir():
        return False
    return not any(path.iterdir())


def fetch_source(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Clone NetBox into the install directory, or update an existing clone,
    then check out the configured version and hand the tree to the service
    account.

    Raises:
        SourceRefNotFoundError: If the configured version does not exist.
        RuntimeError: If the install directory holds something other than a
            git checkout.
        subprocess.CalledProcessError: If a git command fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    install_dir = Path(app_settings.install_dir)
    version = app_settings.netbox.version

    if (install_dir / ".git").exists():
        log_message(
            f"{symbols.get('info', 'ℹ️')} NetBox already cloned in {install_dir}. Fetching updates...",
            "info",
            logger_to_use,
            app_settings,
        )
        _git(["fetch", "--all", "--tags", "--prune"], app_settings, logger_to_use)
        if version == LATEST:
            update_to_latest(app_settings, logger_to_use)
        else:
            checkout_ref(version, app_settings, logger_to_use)
    elif _directory_is_empty_or_absent(install_dir):
        log_message(
            f"{symbols.get('gear', '⚙️')} Cloning {app_settings.netbox.repo_url} into {install_dir}...",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            ["git", "clone", app_settings.netbox.repo_url, str(install_dir)],
            app_settings,
            current_logger=logger_to_use,
        )
        if version != LATEST:
            checkout_ref(version, app_settings, logger_to_use)
    else:
        raise RuntimeError(
            f"{install_dir} exists and is not empty, but is not a git checkout. "
            "Move it aside or point INSTALL_DIR elsewhere."
        )

    ensure_directory_owned_by(
        install_dir,
        f"{app_settings.netbox.user}:{app_settings.netbox.group}",
        app_settings,
        logger_to_use,
        recursive=True,
    )
