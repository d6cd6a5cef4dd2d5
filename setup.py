#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""The setup script."""

from setuptools import setup, find_namespace_packages

with open('README.md') as readme_file:
    readme = readme_file.read()

requirements = ['gin-config', 'numpy', 'pandas', 'pyarrow', 'tqdm']

test_requirements = ['pytest']

setup(
    author="ratschlab",
    author_email='grlab@ratschlab.org',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
    description="Derivation of index invasive mechanical ventilation episodes from CLIF tables.",
    entry_points={
        "console_scripts": ['imv-episodes = imv_episodes.run:main']
    },
    install_requires=requirements,
    extras_require={'test': test_requirements},
    license="MIT license",
    long_description=readme,
    long_description_content_type='text/markdown',
    include_package_data=True,
    keywords='imv_episodes',
    name='imv_episodes',
    packages=find_namespace_packages(include=['imv_episodes', 'imv_episodes.*']),
    python_requires='>=3.8',
    test_suite='tests',
    version='1.0.0',
    zip_safe=False,
)
