from setuptools import setup, find_packages

setup(
    name="hospital-quality-framework",
    version="1.2.0",
    packages=find_packages(include=["hospital_quality", "hospital_quality.*"]),
    install_requires=[
        "pandas>=2.0",
        "numpy>=1.24",
        "scipy>=1.10",
        "scikit-learn>=1.3",
        "matplotlib>=3.7",
        "seaborn>=0.12",
        "PyYAML>=6.0",
        "psutil>=5.9"
    ],
    extras_require={
        "test": ["pytest>=7.0,<9.1"],
    },
    entry_points={
        "console_scripts": [
            "hospital-quality=hospital_quality.cli:main",
        ],
    },
    python_requires=">=3.10",
    description="Composite hospital quality scoring, ranking and performance clustering",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ]
)
