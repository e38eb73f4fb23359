"""Setup configuration for the Webchat terminal client."""

from setuptools import setup, find_packages

setup(
    name="webchat-client",
    version="0.1.0",
    description="Terminal client for a real-time WebSocket chat server",
    author="Webchat Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "websockets>=13.0",
        "textual>=0.86.0",
        "rich>=13.3",
        "httpx>=0.27.0",
        "markdown>=3.5",
        "bleach>=6.0.0",
        "pygments>=2.17",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "webchat=webchat.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
