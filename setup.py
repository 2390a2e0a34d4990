#!/usr/bin/env python3
"""
Setup script for unitsite - static site generator.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='unitsite',
    version='1.0.0',
    author='Stephan Schröder',
    description='A small static site generator for a personal developer blog',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'unitsite_pkg': [
            'themes/*/templates/*.html',
            'themes/*/static/*/*',
        ],
    },
    include_package_data=True,
    install_requires=[
        'PyYAML>=6.0',
        'Jinja2>=3.1',
        'mistune>=3.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Software Development :: Code Generators',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.11',
    entry_points={
        'console_scripts': [
            'unitsite=unitsite_pkg.cli:main',
        ],
    },
    keywords='static site generator, markdown, jinja2, blog, hugo',
)
