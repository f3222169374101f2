# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from typing import List, Optional, Union

from common.command_utils import (
    command_exists,
    run_command,
    run_elevated_command,
)
from netbox_installer.config_models import AppSettings

NONINTERACTIVE_ENV: List[str] = ["env", "DEBIAN_FRONTEND=noninteractive"]


class AptManager:
    """
    A small manager for Debian apt packages using the command-line tools.

    Every apt-get invocation runs with DEBIAN_FRONTEND=noninteractive so no
    debconf prompt can block the installer.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the AptManager.
        Args:
            logger: An optional logging object.
        """
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def update(
        self, app_settings: AppSettings, raise_error: bool = False
    ) -> bool:
        """
        Updates the list of available packages using 'apt-get update'.

        Args:
            app_settings: The application settings.
            raise_error: Whether to raise an exception on failure.

        Returns:
            True if successful, False otherwise.
        """
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        try:
            run_elevated_command(
                NONINTERACTIVE_ENV + ["apt-get", "update", "-yq"],
                app_settings,
                current_logger=self.logger,
            )
            self.logger.info("Apt package lists updated successfully.")
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            if raise_error:
                raise
            return False

    def is_installed(self, pkg_name: str, app_settings: AppSettings) -> bool:
        """Return True if dpkg reports the package as installed."""
        try:
            result = run_command(
                ["dpkg-query", "-W", "-f=${db:Status-Status}", pkg_name],
                app_settings,
                capture_output=True,
                check=True,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            return False
        return (
            "installed" in result.stdout
            and "not-installed" not in result.stdout
        )

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = True,
        raise_error: bool = False,
    ) -> bool:
        """
        Installs one or more packages using 'apt-get install'.

        Packages dpkg already reports as installed are skipped.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to update the package lists before installing.
            raise_error: Re-raise the apt-get failure instead of returning False.

        Returns:
            True if successful, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]

        if update_first:
            if not self.update(app_settings, raise_error=raise_error):
                return False

        packages_to_install = []
        for pkg_name in packages:
            if self.is_installed(pkg_name, app_settings):
                self.logger.info(
                    f"Package '{pkg_name}' is already installed. Skipping."
                )
            else:
                self.logger.info(
                    f"Marking package for installation: {pkg_name}"
                )
                packages_to_install.append(pkg_name)

        if not packages_to_install:
            self.logger.info("All requested packages are already installed.")
            return True

        self.logger.info(
            f"Committing installation for: {', '.join(packages_to_install)}"
        )
        try:
            cmd = NONINTERACTIVE_ENV + [
                "apt-get",
                "install",
                "-yq",
            ] + packages_to_install
            run_elevated_command(
                cmd, app_settings, current_logger=self.logger
            )
            self.logger.info("Packages installed successfully.")
            return True
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Failed to install packages: {e}")
            if raise_error:
                raise
            return False
