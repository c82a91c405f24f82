"""
Setup script for EPC Explorer.
"""

from setuptools import setup, find_packages

setup(
    name="epc-explorer",
    version="1.0.0",
    description="Live RFID tag inventory explorer",
    author="EPC Explorer Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run"],
    python_requires=">=3.8",
    install_requires=[
        "pyserial>=3.5",
        "sllurp>=0.5.0",
        "twisted>=21.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "epc-explorer=run:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Manufacturing",
        "Topic :: System :: Hardware",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
