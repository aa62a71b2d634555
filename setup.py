"""Setup configuration for Chatwarden Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="chatwarden",
    version="0.1.0",
    description="A Discord bot that removes explicit images and chats through a local Ollama model",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord",
        "Pillow",
        "pillow-heif",
        "requests",
        "PyYAML",
        "python-dotenv",
        "prompt_toolkit",
        "torch",
        "transformers",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatwarden=chatwarden.main:main",
        ],
    },
)
