import io
import os
import re

from setuptools import find_packages, setup


with io.open("flask_treeview/__init__.py", "rt", encoding="utf8") as f:
    version = re.search(r"__version__ = \"(.*?)\"", f.read()).group(1)


def fpath(name):
    return os.path.join(os.path.dirname(__file__), name)


def read(fname):
    return open(fpath(fname)).read()


def desc():
    return read("README.rst")


setup(
    name="Flask-TreeView",
    version=version,
    license="BSD",
    author="Flask-TreeView contributors",
    description=(
        "Nested set tree management and tree picker widgets for Flask,"
        " backed by SQLAlchemy and rendered in a single pass."
    ),
    long_description=desc(),
    long_description_content_type="text/x-rst",
    packages=find_packages(exclude=["tests*"]),
    package_data={"flask_treeview": ["templates/treeview/*.html"]},
    include_package_data=True,
    zip_safe=False,
    platforms="any",
    install_requires=[
        "Flask>=2.2, <4",
        "Flask-Babel>=3, <5",
        "Flask-SQLAlchemy>=3.1, <4",
        "SQLAlchemy>=2.0, <3",
        "MarkupSafe>=2.1, <4",
        "marshmallow>=3.18.0, <5",
        "WTForms>=3, <4",
        "werkzeug<4",
    ],
    extras_require={
        "testing": ["pytest>=7"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: Flask",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
)
