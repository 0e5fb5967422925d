from setuptools import setup, find_packages

setup(
    name="chip8_vm",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "matplotlib>=3.4.0",
        "tqdm>=4.62.0",
        "pyyaml>=5.4",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "chip8-vm=chip8_vm.main:main",
        ],
    },
    author="DoubleGate",
    author_email="parobek@gmail.com",
    description="A CHIP-8 virtual machine core with a headless host runner",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Topic :: System :: Emulators",
    ],
    python_requires=">=3.9",
)
