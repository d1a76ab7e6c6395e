"""
otpkit - build, cache and install Erlang/OTP releases on CI runners.
"""

__version__ = "0.1.0"
