"""symcrypt: encrypt and decrypt data with a symmetric private key.

The private key may come from a string, a file, an environment variable,
the OS keychain or an interactive prompt, and may itself be
password-protected.
"""

from symcrypt.version import __version__

__all__: list[str] = ["__version__"]
