"""Setup module for zigcap"""

from setuptools import find_packages, setup

import zigcap

REQUIRES = [
    "aiosqlite>=0.16.0",
    "voluptuous",
    "zigpy>=0.56.0",
]

TESTS_REQUIRE = [
    "freezegun",
    "pytest",
    "pytest-asyncio",
]

setup(
    name="zigcap",
    version=zigcap.__version__,
    description="Binds device capabilities onto the ZCL clusters of zigpy devices",
    long_description=(
        "Maps host capabilities such as onoff, dim or measure_temperature onto"
        " ZCL clusters: reading and parsing attributes, sending commands,"
        " configuring attribute reporting and debouncing grouped changes."
    ),
    license="GPL-3.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=REQUIRES,
    extras_require={"testing": TESTS_REQUIRE},
    python_requires=">=3.9",
)
