#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Entry point for the NetBox installer.
"""

import sys

from netbox_installer.main_installer import main

__all__ = ["main"]

if __name__ == "__main__":
    sys.exit(main())
