"""
Install command implementation.

Installs an OTP release, reusing a cached build when possible, and exposes
its executables to later workflow steps.
"""

import logging

from otpkit.ci.actions import add_path, get_input, is_running_on_runner
from otpkit.config.parser import load_config
from otpkit.otp.pipeline import OTPInstaller

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")

    version = args.otp_version or get_input("otp-version", required=True)

    config = load_config(args.config)
    if args.install_root:
        config.install_root = args.install_root
    if args.cache_dir:
        config.cache_dir = args.cache_dir

    result = OTPInstaller(config).install(version)

    if not args.no_path:
        add_path(result.bin_dir)
        if not is_running_on_runner():
            logger.info(f"Add {result.bin_dir} to PATH in your shell to use this release")

    source = "cache" if result.cache_hit else "a fresh build"
    print(f"Installed OTP {result.version} from {source} to {result.install_root}")
    return 0
