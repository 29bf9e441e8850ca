#!/usr/bin/env python
# -*- coding: utf-8 -*-
from setuptools import find_packages, setup

# There are problems running setup.py on Windows if the encoding is not set
with open('README.md', encoding='utf8') as readme_file:
    readme = readme_file.read()

with open('flare/VERSION', encoding='utf8') as version_file:
    version = version_file.read().strip()


setup(
    name='flare-sdk',
    version=version,
    description="Captures errors, transactions and logs and delivers them to a collector.",
    long_description=readme,
    long_description_content_type="text/markdown",
    author="flare maintainers",
    author_email='maintainers@flare-sdk.dev',
    packages=find_packages(include=['flare', 'flare.*']),
    package_data={'flare': ['VERSION']},
    entry_points={
        'console_scripts': [
            'flare=flare.cli:cli'
        ]
    },
    include_package_data=True,
    install_requires=[
        'certifi',
        'click>=8.0',
        'httpx>=0.26',
        'pydantic>=2.0,<3.0',
        'rich',
        'typer>=0.12',
        'typing-extensions>=4.0',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    python_requires=">=3.9",
    license="MIT license",
    zip_safe=False,
    keywords='flare telemetry errors tracing',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
