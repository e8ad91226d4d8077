#!/usr/bin/env python3
"""Setup script for Feed Cleaner."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="feed-cleaner",
    version="0.1.0",
    author="Feed Cleaner Team",
    author_email="team@example.com",
    description="Filters low-value items out of a progressively rendered content feed",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: Browsers",
        "Topic :: Text Processing :: Filters",
    ],
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "pydantic-settings>=2.2",
        "httpx>=0.27",
        "beautifulsoup4>=4.12",
        "structlog>=24.1",
        "orjson>=3.10",
        "click>=8.1",
        "jinja2>=3.1",
        "pyyaml>=6.0",
        "rich>=13.7.1",
    ],
    extras_require={
        "dev": [
            "pytest>=8.2",
            "pytest-asyncio>=0.23",
            "ruff>=0.4",
            "mypy>=1.10",
            "coverage>=7.5",
            "pytest-cov>=4.1",
        ]
    },
    entry_points={
        "console_scripts": [
            "feed-cleaner=feed_cleaner.orchestrator:cli",
        ],
    },
    include_package_data=True,
    package_data={
        "feed_cleaner": ["templates/*.md", "templates/*.j2"],
    },
)
