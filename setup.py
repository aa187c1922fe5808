from setuptools import setup, find_packages

setup(
    name="privacy-core-service",
    version="1.0.0",
    description="Privacy-preserving content deduplication, hash comparison, audit and retention core",
    author="Your Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#")
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
)
