"""
Setup script for the Local Bundle Adjustment scheduler.
"""

from setuptools import setup, find_packages
import os


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "Distance-based local bundle adjustment scheduling for incremental SfM"


# Core requirements (always installed)
install_requires = [
    'numpy>=1.19.0',
    'networkx>=3.0',
]

# Optional dependencies for different use cases
extras_require = {
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
    ],
    'test': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
    ],
}

setup(
    name="local-bundle-adjustment",
    version="1.0.0",
    description="Distance-based local bundle adjustment scheduling for incremental Structure-from-Motion",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['LocalBundleAdjustment', 'LocalBundleAdjustment.*']),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    keywords=[
        "structure from motion",
        "bundle adjustment",
        "local bundle adjustment",
        "pose graph",
    ],
)
