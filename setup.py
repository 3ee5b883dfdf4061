from setuptools import find_packages, setup


setup(
    name="busgen",
    version="0.1.0",
    description="Generator for in-process, type-safe asyncio event buses from a dict declaration.",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "structlog>=24.1",
        "rich>=13.7",
        "typer>=0.12",
    ],
    extras_require={
        "dev": ["pytest>=8.0", "pytest-asyncio>=0.23", "ruff>=0.6", "mypy>=1.8"],
    },
    entry_points={"console_scripts": ["busgen=busgen.cli:app"]},
)
