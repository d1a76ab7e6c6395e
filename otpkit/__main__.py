"""
Entry point for running otpkit CLI as a module.

Usage: python -m otpkit [command] [options]
"""

from otpkit.cli.parser import main

if __name__ == "__main__":
    main()
