"""SafeMeet backend - OTP verification, password auth and push notifications"""

__version__ = "1.0.0"
