import re

from setuptools import setup

with open("README.rst") as readme:
    long_description = readme.read()

with open("psbtplan/__init__.py") as init:
    version = re.search(r'^__version__ = "([^"]+)"', init.read(), re.M).group(1)

setup(
    name="psbt-plan",
    version=version,
    description="Populate PSBT inputs from descriptor spending plans",
    long_description=long_description,
    license="MIT",
    keywords="bitcoin psbt descriptors taproot",
    install_requires=[
        "ecdsa>=0.17,<1.0",
        "sympy>=1.2,<2.0",
    ],
    packages=["psbtplan"],
    zip_safe=False,
)
