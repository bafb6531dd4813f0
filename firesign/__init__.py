"""FireSign: Google sign-in with Firebase Authentication."""

__version__ = "0.1.0"
