"""
Setup script for the View Selection and Point Cloud Refinement Heuristic.
"""

from setuptools import setup, find_packages
import os


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "View selection and point cloud refinement heuristic for multi-view reconstruction"


# Core requirements (always installed)
install_requires = [
    'numpy>=1.19.0',
    'scipy>=1.7.0',
    'open3d>=0.17.0',
    'trimesh>=3.9.0',
]

# Optional dependencies for different use cases
extras_require = {
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
    ],
}

setup(
    name="view-selection",
    version="1.0.0",
    description="View selection and point cloud refinement heuristic for multi-view reconstruction",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['ViewSelection', 'ViewSelection.*']),
    py_modules=['run_view_selection'],
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
    entry_points={
        'console_scripts': [
            'view-selection=run_view_selection:main',
        ],
    },
    keywords=[
        "multi-view stereo",
        "view selection",
        "point cloud",
        "surface reconstruction",
    ],
)
