"""Command execution: one runner per command descriptor.

The runner table is keyed by :attr:`CommandDescriptor.name`.  Eligibility
lives entirely in :mod:`symcrypt.core.command_resolver`; runners only do
the work once a descriptor has been chosen.

Guarantees
----------
* The private key is resolved only for descriptors that require it.
* Runners never print; status lines travel in
  :attr:`CommandResult.messages`.
* Only :class:`~symcrypt.exceptions.SymcryptError` subclasses escape.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePath

from symcrypt.core.context import AppContext
from symcrypt.core.models import CommandDescriptor, CommandResult, OptionSet, ResolvedKey
from symcrypt.core.protocols import KeychainPort
from symcrypt.exceptions import (
    ContentError,
    EditorError,
    KeychainError,
    PasswordMismatchError,
    SymcryptError,
)
from symcrypt.version import __version__

logger = logging.getLogger(__name__)

NEW_PASSWORD_PROMPT = "New password: "
CONFIRM_PASSWORD_PROMPT = "Confirm password: "


@dataclass(frozen=True)
class CommandContext:
    """Everything a single runner needs."""

    descriptor: CommandDescriptor
    options: OptionSet
    app: AppContext
    resolved_key: ResolvedKey | None = None

    @property
    def key(self) -> bytes:
        if self.resolved_key is None:
            raise SymcryptError(f"Command {self.descriptor.name} ran without a private key.")
        return self.resolved_key.key


Runner = Callable[[CommandContext], CommandResult]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _read_content(ctx: CommandContext) -> bytes:
    """Return the data named by ``--string`` or ``--file``."""
    text = ctx.options.string("string")
    if text is not None:
        return text.encode("utf-8")
    name = ctx.options.string("file")
    if name is None:
        raise ContentError(
            "Nothing to process.",
            hint="Use -s/--string or -f/--file (use '-' for standard input).",
        )
    return ctx.app.files.read(name)


def _ask_new_password(ctx: CommandContext) -> str:
    port = ctx.app.input_port
    password = port.prompt(NEW_PASSWORD_PROMPT, secret=True)
    if not password:
        raise PasswordMismatchError("The password must not be empty.")
    confirmation = port.prompt(CONFIRM_PASSWORD_PROMPT, secret=True)
    if password != confirmation:
        raise PasswordMismatchError("The passwords do not match.")
    return password


def _require_keychain(ctx: CommandContext) -> KeychainPort:
    if ctx.app.keychain is None:
        raise KeychainError("The keychain is not available on this system.")
    return ctx.app.keychain


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------

def _encrypt(ctx: CommandContext) -> CommandResult:
    ciphertext = ctx.app.cipher.encrypt(_read_content(ctx), ctx.key)
    return CommandResult(payload=ciphertext.decode("ascii"))


def _decrypt(ctx: CommandContext) -> CommandResult:
    ciphertext = _read_content(ctx).strip()
    return CommandResult(payload=ctx.app.cipher.decrypt(ciphertext, ctx.key))


def _edit(ctx: CommandContext) -> CommandResult:
    if ctx.app.editor is None:
        raise EditorError("No editor is configured.", hint="Set the EDITOR variable.")
    name = ctx.options.string("file") or ""
    if name == "-":
        raise ContentError("Standard input can not be edited in place.")

    cipher = ctx.app.cipher
    plaintext = cipher.decrypt(ctx.app.files.read(name).strip(), ctx.key)
    edited = ctx.app.editor.edit(plaintext, suffix=PurePath(name).suffix)
    if edited == plaintext:
        return CommandResult(messages=("No changes were made.",))

    messages: list[str] = []
    if ctx.options.is_set("backup"):
        backup_name = ctx.app.files.backup(name)
        messages.append(f"Backup saved to {backup_name}")
    ctx.app.files.write(name, cipher.encrypt(edited, ctx.key))
    messages.append(f"Saved changes to {name}")
    return CommandResult(messages=tuple(messages))


def _generate_key(ctx: CommandContext) -> CommandResult:
    material = ctx.app.cipher.generate_key()
    if ctx.options.is_set("password"):
        material = ctx.app.cipher.encrypt_with_password(material, _ask_new_password(ctx))

    messages: tuple[str, ...] = ()
    name = ctx.options.string("keychain")
    if name is not None:
        _require_keychain(ctx).write(name, material)
        messages = (f"Key saved to the keychain as {name!r}",)
    return CommandResult(payload=material.decode("ascii"), messages=messages)


def _password_protect_key(ctx: CommandContext) -> CommandResult:
    protected = ctx.app.cipher.encrypt_with_password(ctx.key, _ask_new_password(ctx))
    return CommandResult(payload=protected.decode("ascii"))


def _keychain_add_key(ctx: CommandContext) -> CommandResult:
    assert ctx.resolved_key is not None
    name = ctx.options.string("keychain") or ""
    _require_keychain(ctx).write(name, ctx.resolved_key.material.encode("ascii"))
    return CommandResult(messages=(f"Key saved to the keychain as {name!r}",))


def _keychain_delete_key(ctx: CommandContext) -> CommandResult:
    name = ctx.options.string("keychain_delete") or ""
    _require_keychain(ctx).delete(name)
    return CommandResult(messages=(f"Deleted {name!r} from the keychain",))


def _print_key(ctx: CommandContext) -> CommandResult:
    return CommandResult(payload=ctx.key.decode("ascii"))


def _show_version(ctx: CommandContext) -> CommandResult:
    return CommandResult(payload=f"symcrypt {__version__}")


def _show_help(ctx: CommandContext) -> CommandResult:
    return CommandResult(payload=ctx.app.help_text)


def _show_examples(ctx: CommandContext) -> CommandResult:
    return CommandResult(payload=ctx.app.examples_text)


RUNNERS: dict[str, Runner] = {
    "encrypt": _encrypt,
    "decrypt": _decrypt,
    "edit": _edit,
    "generate_key": _generate_key,
    "password_protect_key": _password_protect_key,
    "keychain_add_key": _keychain_add_key,
    "keychain_delete_key": _keychain_delete_key,
    "print_key": _print_key,
    "show_version": _show_version,
    "show_help": _show_help,
    "show_examples": _show_examples,
}


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def execute(
    descriptor: CommandDescriptor,
    options: OptionSet,
    app: AppContext,
) -> CommandResult:
    """Resolve the key if needed and run *descriptor*'s operation.

    Raises
    ------
    SymcryptError
        Any failure from key resolution, the cipher or a collaborator.
    """
    try:
        runner = RUNNERS[descriptor.name]
    except KeyError:
        raise SymcryptError(f"No runner is registered for {descriptor.name!r}.") from None

    resolved_key: ResolvedKey | None = None
    if descriptor.requires_key:
        resolved_key = app.key_resolver().resolve(
            options,
            excluded_sources=descriptor.excluded_key_sources,
            password_flag_unlocks=descriptor.password_flag_unlocks,
        )

    logger.debug("Running %s", descriptor.name)
    return runner(
        CommandContext(
            descriptor=descriptor,
            options=options,
            app=app,
            resolved_key=resolved_key,
        )
    )
