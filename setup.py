"""Setup configuration for FlightSurety."""

from setuptools import find_packages, setup

setup(
    name="flightsurety",
    version="0.1.0",
    description="Flight delay insurance with airline governance and oracle consensus",
    author="FlightSurety Team",
    packages=find_packages(include=["flightsurety", "flightsurety.*"]),
    package_data={"flightsurety.services.abis": ["*.json"]},
    python_requires=">=3.8",
    install_requires=[
        "web3>=6.20.0,<7",
        "eth-account>=0.8.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-mock>=3.10.0",
        ],
        "dev": [
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "flightsurety=flightsurety.cli:main",
        ],
    },
)
