from pathlib import Path

from setuptools import find_namespace_packages, setup

# Load packages from requirements.txt
BASE_DIR = Path(__file__).parent
with open(Path(BASE_DIR, "requirements.txt")) as file:
    required_packages = [ln.strip() for ln in file.readlines() if ln.strip()]

# Define our package
setup(
    name="working-memory-coach",
    version="0.1.0",
    description="Adaptive working-memory exercise engine: profiles, staircase difficulty, timed sessions and recommendations",
    python_requires=">=3.10",
    packages=find_namespace_packages(include=["wmcoach", "wmcoach.*"]),
    package_data={"wmcoach": ["schemas/*.json"]},
    include_package_data=True,
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0.0"],
        "dev": ["pytest>=7.0.0", "pre-commit==2.19.0"],
    },
)
