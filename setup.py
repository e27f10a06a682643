#!/usr/bin/env python
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the sumo package for the
#   copyright and license terms.
#
# ## ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##

import re

from os.path import join as opj
from os.path import dirname

from setuptools import setup, find_packages


def get_version():
    """Load version of sumo from sumo/version.py without importing it"""
    with open(opj(dirname(__file__), 'sumo', 'version.py')) as f:
        match = re.search(r"^__version__ = ['\"]([^'\"]+)['\"]", f.read(),
                          re.MULTILINE)
    return match.group(1)


# sumo version to be installed
version = get_version()

# Only recentish versions of find_packages support include
# so we will filter manually for maximal compatibility
sumo_pkgs = [pkg for pkg in find_packages('.') if pkg.startswith('sumo')]

requires = {
    'core': [
        'appdirs',
        'attrs>=16.3.0',
        'pyyaml',
        'paramiko>=2.8.1',
        'fabric>=2.3.1',
        'invoke',
        'scp',
        'boto3',
        'botocore',
        'tenacity',
    ],
    'tests': [
        'pytest>=3.3.0',
    ]
}

requires['full'] = sum(list(requires.values()), [])

with open(opj(dirname(__file__), 'README.md')) as f:
    long_description = f.read()

setup(
    name="sumo",
    author="The Sumo Team and Contributors",
    version=version,
    description="Launch EC2 instances and volumes, and converge them with chef",
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=sumo_pkgs,
    python_requires='>=3.6',
    install_requires=requires['core'],
    extras_require=requires,
    entry_points={
        'console_scripts': [
            'sumo=sumo.cmdline.main:main',
        ],
    },
)
