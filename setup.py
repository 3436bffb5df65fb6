import os
import re
import setuptools
from typing import List


def get_content(file: str) -> str:
    with open(file, "r", encoding="utf-8") as f:
        return f.read()


def get_version(package: str) -> str:
    path = os.path.join(package, "__init__.py")
    return re.search("__version__ = ['\"]([^'\"]+)['\"]", get_content(path)).group(1)


def get_packages(package: str) -> List[str]:
    return [
        directory.replace(os.sep, ".")
        for directory, subdirectories, filenames in os.walk(package)
        if os.path.exists(os.path.join(directory, "__init__.py"))
    ]


setuptools.setup(
    name="apibin",
    version=get_version("apibin"),
    packages=get_packages("apibin"),
    package_data={"apibin.storage": ["books.json"]},
    author="apibin contributors",
    description="Example REST API with echo, examples and a conditional-request books collection",
    long_description=get_content("README.md"),
    long_description_content_type="text/markdown",
    license="MIT",
    install_requires=[
        "fastapi>=0.100.0",
        "pydantic>=2.0,<3.0",
        "pydantic-settings>=2.0,<3.0",
        "uvicorn>=0.20.0,<1.0"
    ],
    extras_require={
        "full": [
            "ujson>=5.2,<6.0"
        ],
        "test": [
            "httpx>=0.23",
            "pytest>=7.0"
        ]
    },
    entry_points={
        "console_scripts": ["apibin=apibin.__main__:main"]
    },
    project_urls={},
    python_requires=">=3.9",
    classifiers=[
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Development Status :: 4 - Beta"
    ]
)
