#!/usr/bin/env python

from setuptools import find_packages, setup

setup(
    name="extprof",
    version="0.1.0",
    description="External profiler plugins (JFR, VTune) for benchmark harness trials",
    author="",
    author_email="",
    url="https://github.com/user/project",
    install_requires=[
        "hydra-core>=1.3",
        "omegaconf>=2.3",
        "psutil>=5.9",
        "tqdm>=4.65",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"extprof": ["configs/*.yaml"]},
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "extprof-run = extprof.cli.run_trial:main",
        ]
    },
)
