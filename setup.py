import re

import setuptools

# Read the version without importing the package (its dependencies may not be installed yet)
with open("pyfranklinwh/__init__.py", "r") as fh:
    __version__ = '.'.join(re.search(r"version_tuple = \((\d+), (\d+), (\d+)\)", fh.read()).groups())

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="pyfranklinwh",
    version=__version__,
    author="pyfranklinwh contributors",
    description="Python module to access a FranklinWH aGate through the FranklinWH cloud relay",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(),
    install_requires=[
        'requests',
        'urllib3',
        'python-dotenv',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['pyfranklinwh=pyfranklinwh.__main__:main'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
