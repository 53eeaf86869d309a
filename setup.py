#!/usr/bin/python3
#
# This file is part of atecc-transport
#
# atecc-transport is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
#
# Copyright 2026 The atecc-transport authors


from setuptools import setup, find_packages

with open("README.md", "r") as f:
    long_description = f.read()

setup(
    name="atecc-transport",
    version="0.1.0",
    description="I2C and SWI transport layer for ATECC secure elements",
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=["pyserial", "smbus2", "crcmod", "rich"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["atecc-transport=atecc_transport.cli:main"]},
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.6")
