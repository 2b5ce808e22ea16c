"""Setup script for envar."""

from setuptools import find_packages, setup

setup(
    name="envar",
    version="0.1.0",
    description="Inspect and modify persisted user and machine environment variables",
    author="Envar Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",  # CLI framework
        "rich>=13.0.0",  # Terminal output
        "pyyaml>=6.0",  # Configuration handling
        "python-dotenv>=1.0.0",  # File-backed variable stores
        "psutil>=5.9.0",  # Process environment inspection
    ],
    package_data={
        "envar": ["py.typed"],
    },
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
            "black>=22.1.0",
            "isort>=5.10.1",
            "flake8>=4.0.1",
            "mypy>=1.0.0",  # Type checking
            "types-PyYAML",
            "types-psutil",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "envar=envar.cli.main:cli",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Systems Administration",
        "Topic :: Utilities",
    ],
)
