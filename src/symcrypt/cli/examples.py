"""Usage examples shown by ``symcrypt --examples``."""

from __future__ import annotations

EXAMPLES: tuple[tuple[str, str], ...] = (
    (
        "Generate a new private key and save it to a file",
        "symcrypt -g -o ~/.symcrypt.key",
    ),
    (
        "Generate a password-protected key and store it in the keychain",
        "symcrypt -g -p -x my-key -q",
    ),
    (
        "Encrypt a string with a key stored in a file",
        "symcrypt -e -K ~/.symcrypt.key -s 'secret data'",
    ),
    (
        "Decrypt a file with a key held in an environment variable",
        "symcrypt -d --key-env SYMCRYPT_KEY -f secrets.enc -o secrets.txt",
    ),
    (
        "Encrypt standard input, pasting the key interactively",
        "cat notes.txt | symcrypt -e -i -f - -o notes.enc",
    ),
    (
        "Edit an encrypted file in $EDITOR, keeping a backup",
        "symcrypt -t -x my-key -f secrets.enc -b",
    ),
    (
        "Add a password to an existing key",
        "symcrypt -p -K ~/.symcrypt.key -o ~/.symcrypt-protected.key",
    ),
    (
        "Cache the key password for 15 minutes",
        "symcrypt -d -c -u 900 -K ~/.symcrypt-protected.key -f secrets.enc",
    ),
)


def render_examples() -> str:
    """Return the examples as plain text, one blank line between them."""
    blocks = [f"# {description}\n{command}" for description, command in EXAMPLES]
    return "\n\n".join(blocks)
