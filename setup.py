from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="redistimeseries-client",
    version="0.1.0",
    description="A Python client for the RedisTimeSeries module",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "examples*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
    install_requires=[
        "redis>=4.5",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'redistimeseries-cli=redistimeseries.cli:main',
        ],
    },
)
