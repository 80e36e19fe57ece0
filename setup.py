from setuptools import setup, find_packages


setup(
    name="tarlet",
    version="0.1",
    packages=find_packages(include=["tarlet", "tarlet.*"]),
    description="A small ustar archive engine: create, list, append, update and extract regular files.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "tarlet=tarlet.cli:main",
        ]
    },
)
