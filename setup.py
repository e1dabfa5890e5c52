#!/usr/bin/env python

# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# -*- encoding: utf-8 -*-

from glob import glob
from os.path import basename
from os.path import splitext

from setuptools import find_packages
from setuptools import setup


setup(
    name="clavis",
    version="0.0.0",
    license="GPL-3.0-or-later",
    description="Compiler for keyboard remapping configs",
    long_description="Compiles INI-style keyboard remapping configs into immutable layer and keymap tables.",
    author="Rose Davidson",
    author_email="rose@metaclassical.com",
    packages=find_packages("src"),
    package_dir={"": "src"},
    py_modules=[splitext(basename(path))[0] for path in glob("src/*.py")],
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: System :: Hardware",
    ],
    keywords=["keyboard", "keyd", "remapping"],
    python_requires=">=3.10",
    install_requires=[
        "attrs",
        "cattrs",
        "msgspec",
        "pygtrie>=2.4.2",
        "trio>=0.20.0",
        "trio-util>=0.7.0",
    ],
    extras_require={
        "test": ["pytest>=6.2.4", "pytest-trio"],
    },
    entry_points={
        "console_scripts": [
            "clavis-check = clavis.scripts:check_cli",
        ],
    },
    setup_requires=[
        "setuptools>=30.3.0",
        "wheel",
    ],
)
