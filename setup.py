#!/usr/bin/env python
from setuptools import setup, find_packages

setup(
    name="gpm8212",
    version="0.0.1",
    author="Osmo Systems",
    author_email="dev@osmobot.com",
    description="Serial driver for the GWInstek GPM-8212 digital power meter",
    packages=find_packages(),
    entry_points={
        "console_scripts": ["read_power_meter = gpm8212.read:run"]
    },
    # fmt: off
    install_requires=[
        "backoff",
        "pandas",
        "pyserial"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock"
        ]
    },
    # fmt: on
    include_package_data=True,
)
