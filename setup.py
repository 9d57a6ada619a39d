#!/usr/bin/env python3
"""
Setup script for swis-datasource-toolkit
"""

from setuptools import setup, find_packages


def main():
    # Read the long description from README
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()

    # Read requirements
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

    setup(
        name="swis-datasource-toolkit",
        version="1.0.0",
        description="A Python SDK for querying SolarWinds SWIS and shaping results for visualization",
        long_description=long_description,
        long_description_content_type="text/markdown",
        packages=find_packages(include=["swis_datasource_toolkit", "swis_datasource_toolkit.*"]),
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: MIT License",
            "Operating System :: OS Independent",
            "Programming Language :: Python :: 3",
            "Programming Language :: Python :: 3.8",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Topic :: Software Development :: Libraries :: Python Modules",
            "Topic :: System :: Monitoring",
        ],
        python_requires=">=3.8",
        install_requires=requirements,
        extras_require={
            "dev": [
                "pytest>=7.0.0",
                "pytest-cov>=4.0.0",
                "black>=22.0.0",
                "flake8>=5.0.0",
                "mypy>=1.0.0",
            ],
            "test": [
                "pytest>=7.0.0",
            ],
        },
        entry_points={
            "console_scripts": [
                "swis-datasource-toolkit=swis_datasource_toolkit.cli:main",
            ],
        },
        include_package_data=True,
        package_data={
            "swis_datasource_toolkit": ["*.yaml", "*.yml"],
        },
    )


if __name__ == "__main__":
    main()
