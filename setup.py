#!/usr/bin/env python3

# standards
from pathlib import Path
import re

# 3rd parties
import setuptools


def get_version() -> str:
    version_file = Path(__file__).parent / 'sonde' / 'version.py'
    version_match = re.search(
        r"SONDE_VERSION = \'(.+)\'",
        version_file.read_text('UTF-8'),
    )
    if not version_match:
        raise Exception("Couldn't parse version.py")
    return version_match.group(1)


setuptools.setup(
    name='sonde',
    version=get_version(),
    description='An HTTP request execution engine built on Requests, with auth strategies, timing and error classification',
    author='Hervé Saint-Amand',
    packages=['sonde', 'sonde.engines'],
    package_data={'sonde': ['py.typed']},
    python_requires='>=3.8',
    install_requires=[
        'chardet>=4',
        'requests>=2.25,<3',
        'urllib3>=1.26',
    ],
    extras_require={
        'test': [
            'flask>=2',
            'pytest>=7',
            'pytest-mock>=3',
        ],
    },
    classifiers=[
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
    ],
    zip_safe=False, # https://mypy.readthedocs.io/en/latest/installed_packages.html#creating-pep-561-compatible-packages
)
