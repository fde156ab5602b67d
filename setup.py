from setuptools import find_packages, setup

setup(
    name="tripletviz",
    version="0.1.0",
    packages=find_packages(include=["tripletviz", "tripletviz.*"]),
    package_data={"tripletviz": ["config.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "networkx>=3.0",
        "numpy>=1.24",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "redis>=5.0.1",
        "prometheus_client>=0.17",
        "fastapi>=0.100",
        "uvicorn>=0.23",
        "typer>=0.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "hypothesis>=6.0",
            "fakeredis>=2.20",
            "httpx>=0.24",
        ],
    },
    entry_points={"console_scripts": ["tripletviz=tripletviz.cli:app_cli"]},
)
