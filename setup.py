"""
This file is part of the SLLP client.

Copyright (C) 2025 Ignacio Santolin and contributors

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""
from setuptools import find_packages, setup

setup(
    name='sllp-client',
    version='2.0.0',
    description='Python client for the Sirius Low Level Protocol (SLLP)',
    author='isantolin',
    author_email='',
    packages=find_packages(include=['sllp', 'sllp.*']),
    python_requires='>=3.11',
    install_requires=[
        'construct',
        'msgspec',
        'marshmallow',
        'transitions',
        'prometheus_client',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
)
