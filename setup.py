import os
import re

from setuptools import find_packages, setup

with open(os.path.join("swhkd_parser", "_package.py")) as f:
    version = re.search(r'^__version__ = "([^"]+)"', f.read(), re.M).group(1)

console_scripts = []
scriptpath = "swhkd_parser/cli"
for hkscript in os.scandir(scriptpath):
    scriptname, ext = os.path.splitext(hkscript.name)
    if not scriptname.startswith("hk") or ext != ".py":
        continue
    console_scripts.append(
        f"{scriptname} = {scriptpath.replace('/', '.')}.{scriptname}:main"
    )
setup(
    name="swhkd-parser",
    version=version,
    description="Parser and expander for swhkd-style hotkey configs",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": console_scripts},
)
