# -*- coding: utf-8 -*-

__author__ = """flare maintainers"""
__email__ = 'maintainers@flare-sdk.dev'

import os

ROOT = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(ROOT, 'VERSION')) as version_file:
    VERSION = version_file.read().strip()
