from setuptools import setup, find_packages

setup(
    name="knowledge_bot",
    version="0.1.0",
    packages=find_packages(include=["knowledge_bot", "knowledge_bot.*"]),
    install_requires=[
        "python-telegram-bot>=20.0",
        "aiohttp",
        "python-dotenv"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio"
        ]
    },
    entry_points={
        "console_scripts": [
            "knowledge-bot=knowledge_bot.main:main"
        ]
    }
)
