#!/usr/bin/env python3

import os
from setuptools import setup, find_packages

THIS_DIRECTORY = os.path.dirname(os.path.realpath(__file__))

NAME = "counter-harness"

with open(os.path.join(THIS_DIRECTORY, "README.md"), encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name=NAME,
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    setup_requires=[],
    install_requires=[
        "secret-sdk>=1.8",
        "bech32>=1.2",
        "requests>=2.22",
        "docker>=4.0",
        "typing_extensions>=3.7",
    ],
    extras_require={"test": ["pytest>=6.0"]},
    cmdclass={},
    description="Integration testing harness for a counter contract deployed on Secret Network",
    long_description=long_description,
    long_description_content_type="text/markdown",
    include_package_data=True,
    keywords="secret-network cosmwasm blockchain smart-contracts integration-testing",
    zip_safe=False,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: OS Independent",
        "Intended Audience :: Developers",
    ],
    python_requires=">=3.8.0",
    entry_points={
        "console_scripts": ["counter_harness = counter_harness.harness:main"]
    },
)
