#!/usr/bin/env python
from setuptools import setup, find_packages

setup(
    name="atlas_scientific",
    version="0.0.1",
    author="Osmo Systems",
    author_email="dev@osmobot.com",
    description="Drivers for Atlas Scientific EZO pH and conductivity probes on an I2C bus",
    url="https://www.github.com/osmosystems/atlas-scientific.git",
    packages=find_packages(),
    entry_points={"console_scripts": ["atlas_probe = atlas_scientific.run:run"]},
    # fmt: off
    install_requires=[
        "backoff",
        "pandas",
        "smbus2"
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
