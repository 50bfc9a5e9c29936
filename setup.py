from setuptools import setup, find_packages

setup(
    name="tourboard",
    version="0.1.0",
    description="To render race standings on a Vestaboard split-flap display",
    author="tourboard maintainers",
    packages=find_packages(include=["tourboard", "tourboard.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.27",
        "numpy>=1.26",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
