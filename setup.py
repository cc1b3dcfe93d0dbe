"""
Setup script for the interview gateway.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="interview-gateway",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["version"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "python-multipart>=0.0.9",
        "httpx>=0.27",
        "tenacity>=8.2",
        "langchain-core>=0.2",
        "langchain-anthropic>=0.1.15",
        "openai>=1.30",
        "json-repair>=0.25",
        "beautifulsoup4>=4.12",
        "pymongo>=4.6",
        "redis>=5.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "pytest-mock>=3.12",
        ],
    },
)
