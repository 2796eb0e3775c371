# Licensed to Elasticsearch B.V. under one or more contributor
# license agreements. See the NOTICE file distributed with
# this work for additional information regarding copyright
# ownership. Elasticsearch B.V. licenses this file to you under
# the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# 	http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

import re
from os.path import dirname, join

try:
    from setuptools import find_packages, setup
except ImportError:
    print("*** Could not find setuptools. Did you install pip3? *** \n\n")
    raise


def str_from_file(name):
    with open(join(dirname(__file__), name)) as f:
        return f.read().strip()


raw_version = str_from_file("csvfeed/_version.py")
version = re.search(r'__version__ = "(.+)"', raw_version).group(1)

# tuples of (major, minor) of supported Python versions ordered from lowest to highest
supported_python_versions = [(3, 10), (3, 11), (3, 12)]

install_requires = [
    # License: MIT
    "redis==5.0.8",
    # License: MIT
    "jsonschema==4.23.0",
    # License: MIT
    "tabulate==0.9.0",
    # License: Apache 2.0
    "ecs-logging==2.2.0",
    # License: PSF
    "typing_extensions==4.12.2",
]

tests_require = ["pytest==8.3.3"]

# These packages are only required when developing csvfeed
develop_require = [
    "pylint==3.3.1",
    "black==24.8.0",
    "isort==5.13.2",
    "nox==2024.4.15",
]

python_version_classifiers = ["Programming Language :: Python :: {}.{}".format(major, minor) for major, minor in supported_python_versions]

first_supported_version = "{}.{}".format(supported_python_versions[0][0], supported_python_versions[0][1])

setup(
    name="csvfeed",
    version=version,
    description="Shared, checkpointed CSV data feeds for distributed load tests",
    long_description=str_from_file("README.md"),
    long_description_content_type="text/markdown",
    license="Apache License, Version 2.0",
    packages=find_packages(where=".", exclude=("tests*",)),
    include_package_data=True,
    python_requires=">={}".format(first_supported_version),
    package_data={"csvfeed": ["resources/*.json"]},
    install_requires=install_requires,
    tests_require=tests_require,
    extras_require={"test": tests_require, "develop": tests_require + develop_require},
    entry_points={
        "console_scripts": ["csvfeed=csvfeed._cli:main"],
    },
    classifiers=[
        "Topic :: Software Development :: Testing :: Traffic Generation",
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: Apache Software License",
        "Intended Audience :: Developers",
        "Operating System :: POSIX",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
    ]
    + python_version_classifiers,
    zip_safe=False,
)
