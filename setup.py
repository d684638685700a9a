#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name='spotify-artist-scraper',
    version='1.0.0',
    description='Spotify artist page track scraper - standalone library, CLI and HTTP API',
    author='Spotify Artist Scraper',
    packages=find_packages(exclude=['tests', 'tests.*']),
    entry_points={
        'console_scripts': [
            'spotify-tracks=spotify_scraper.cli:main',
        ],
    },
    install_requires=[
        # HTML parsing (offline snapshot extraction)
        'beautifulsoup4>=4.11.0',
        'lxml>=4.9.0',
        'soupsieve>=2.3',

        # Browser automation
        'playwright>=1.40.0',

        # Retry and resilience
        'tenacity>=8.0.0',

        # HTTP API
        'fastapi>=0.100.0',
        'uvicorn>=0.23.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0.0',
            'pytest-asyncio>=0.21.0',
            'httpx>=0.24.0',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Indexing/Search',
    ],
    python_requires='>=3.9',
)
