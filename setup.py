import os
import sys

if sys.version_info < (3, 6):
    print('This package needs python 3.6+')
    sys.exit(1)

import setuptools
from setuptools import setup

import kwtools

ext_opt = {
    'options': {}
    }

ext_opt['packages'] = setuptools.find_packages(include=['kwtools', 'kwtools.*'])
ext_opt['package_data'] = {'kwtools.kwlib.testlib': ['response/*.json']}
ext_opt['py_modules'] = ['kw']
ext_opt['entry_points'] = {
    'console_scripts': ['kw = kw:run'],
    }

f = open(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'README.md'))
readme = f.read()
f.close()

setup(
    name='kwtools',
    description='Klocwork CI Tools: job environment setup and cross-project issue synchronisation '
        'for Klocwork builds run from a CI server.',
    long_description=readme,
    long_description_content_type='text/markdown',
    version=kwtools.VERSION,
    python_requires='>=3.6',
    install_requires=[
        'python-dateutil>=2.7',
    ],
    extras_require={
        'test': ['mock', 'pytest'],
    },
    **ext_opt
    )
