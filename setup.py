from setuptools import setup, find_packages

setup(
    name="loreflow",
    version="0.1.0",
    description="Per-agent belief modelling and entity resolution for game NPCs",
    author="LoreFlow Team",
    author_email="loreflow@example.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.22.0",
        "networkx>=2.6",
        "rapidfuzz>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "loreflow=loreflow.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
