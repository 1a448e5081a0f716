from setuptools import setup, find_packages

setup(
    name="weatherdash",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24",
        "pandas>=1.5",
        "python-dotenv>=1.0",
        "azure-identity>=1.12",
        "azure-keyvault-secrets>=4.7",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "weather-dashboard=weatherdash.cli:main",
        ],
    },
    description="Weatherstack client and terminal weather dashboard.",
    author="chriscoveyduck",
    author_email="",
    include_package_data=True,
)
