import os

from setuptools import find_namespace_packages, setup

if os.getenv("MYPYC_ENABLE", "").lower() in ["true", "t", "1"]:
    from mypyc.build import mypycify

    ext_modules = mypycify(
        [
            "src/ts_tools/si/table",
            "src/ts_tools/si/descriptor",
            "--exclude",
            "binary_types.py",
        ]
    )
else:
    ext_modules = []

setup(
    name="ts-tools",
    version="0.1.0",
    description="Codecs for broadcast time tables (ATSC STT, DVB TOT) in binary and XML form.",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src"),
    install_requires=[
        "colorama>=0.4.6",
    ],
    extras_require={
        "dev": [
            "mypy>=1.11",
            "nox>=2024.4.15",
            "pytest>=8.3",
            "pytest-cov>=5.0",
            "ruff~=0.6.2",
            "types-colorama",
        ],
    },
    entry_points={
        "console_scripts": [
            "ts_si_convert=ts_tools.si_convert:main",
        ],
    },
    ext_modules=ext_modules,
)
