from setuptools import setup, find_packages

setup(
    name="uncork",
    version="0.1.0",
    description="Uncork - know when to open it. Readiness, pairing and lineup engine for a wine cellar.",
    author="",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "tenacity>=8.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
)
