"""
Main entry point for the CHIP-8 virtual machine package.

This module allows the package to be run as a module using:
python -m chip8_vm [args]
"""

import sys

from chip8_vm.main import main

if __name__ == "__main__":
    sys.exit(main())
