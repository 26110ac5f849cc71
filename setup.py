#!/usr/bin/env python
# Licensed under a 3-clause BSD style license - see LICENSE.rst
import os
import re

from setuptools import setup

# Synchronize version from code.
VERSION = re.findall(r"__version__ = \"(.*?)\"",
                     open(os.path.join("saltmag", "__init__.py")).read())[0]

setup(
    name="saltmag",
    version=VERSION,
    description="Synthetic magnitudes and model errors for the SALT2 "
                "supernova light-curve model",
    license="BSD",
    packages=["saltmag"],
    python_requires=">=3.7",
    install_requires=["numpy", "scipy", "astropy", "extinction"],
    extras_require={"test": ["pytest"]},
)
