#!/usr/bin/env python3
"""
Coral Generator - Main Entry Point

Usage:
    python main.py grow --seed 42 --report report.json
    python main.py config
    python main.py --version
"""

import sys


def main():
    """Main entry point for Coral Generator."""
    if "--version" in sys.argv[1:]:
        from coralgen import __version__
        print(f"Coral Generator v{__version__}")
        return 0

    from coralgen.cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
