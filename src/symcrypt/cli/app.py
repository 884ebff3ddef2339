"""CLI application entry point and command routing for symcrypt.

This module is the **sole error boundary** for the entire application.
It catches :class:`~symcrypt.exceptions.SymcryptError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here: flags become an
  :class:`~symcrypt.core.models.OptionSet`, the core picks and runs the
  command, and the payload goes to stdout or a file.
* The option vocabulary depends on whether the host has a keychain.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping, Sequence

from symcrypt.cli import exit_codes
from symcrypt.cli.console import console
from symcrypt.config import Settings, load_settings
from symcrypt.core.command_resolver import DEFAULT_REGISTRY, resolve
from symcrypt.core.commands import execute
from symcrypt.core.context import AppContext
from symcrypt.core.models import (
    KEY_SOURCE_OPTIONS,
    CommandDescriptor,
    CommandResult,
    OptionSet,
    option_vocabulary,
)
from symcrypt.core.password_cache import PasswordCache
from symcrypt.exceptions import (
    CommandNotFoundError,
    ConfigurationError,
    KeyNotFoundError,
    SymcryptError,
)
from symcrypt.infra.keychain import keychain_available
from symcrypt.utils.log import setup_logging
from symcrypt.version import __version__

logger = logging.getLogger(__name__)

_NO_ENVIRONMENT_FLAGS = frozenset({"-M", "--no-environment"})
_KEY_MODES = frozenset({"encrypt", "decrypt", "edit"})


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser(*, keychain: bool) -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    ``--help`` and ``--version`` are ordinary flags here because they
    take part in command resolution like every other operation.
    """
    from symcrypt.infra.cache_providers import provider_names

    parser = argparse.ArgumentParser(
        prog="symcrypt",
        description=f"symcrypt ({__version__}): encrypt/decrypt data with a private key.",
        add_help=False,
    )

    modes = parser.add_argument_group("Modes")
    modes.add_argument("-e", "--encrypt", action="store_true", help="encrypt mode")
    modes.add_argument("-d", "--decrypt", action="store_true", help="decrypt mode")
    modes.add_argument("-t", "--edit", action="store_true", help="edit an encrypted file in $EDITOR")

    create = parser.add_argument_group("Create a new private key")
    create.add_argument("-g", "--generate", action="store_true", help="generate a new private key")
    create.add_argument("-p", "--password", action="store_true", help="encrypt the key with a password")
    if keychain:
        create.add_argument(
            "-x", "--keychain", metavar="NAME",
            help="read the key from, or write it to, the OS keychain",
        )

    source = parser.add_argument_group("Read an existing private key from")
    source.add_argument("-k", "--key", metavar="KEY", help="the private key as a string")
    source.add_argument("-K", "--keyfile", metavar="FILE", help="a file containing the private key")
    source.add_argument("--key-env", metavar="VAR", help="an environment variable holding the key")
    source.add_argument("-i", "--interactive", action="store_true", help="type or paste the key interactively")
    if keychain:
        source.add_argument(
            "--keychain-del", dest="keychain_delete", metavar="NAME",
            help="delete the named key from the keychain",
        )

    cache = parser.add_argument_group("Password cache")
    cache.add_argument("-c", "--cache-passwords", dest="cache_enabled", action="store_true", help="enable the password cache")
    cache.add_argument("-u", "--cache-timeout", type=int, metavar="SECONDS", help="expire cached passwords after")
    cache.add_argument(
        "-r", "--cache-provider", metavar="PROVIDER",
        help="cache provider, one of: " + ", ".join(provider_names()),
    )

    data = parser.add_argument_group("Data to encrypt/decrypt")
    data.add_argument("-s", "--string", metavar="STRING", help="a string to encrypt/decrypt")
    data.add_argument("-f", "--file", metavar="FILE", help="a file to read from ('-' for stdin)")
    data.add_argument("-o", "--output", metavar="FILE", help="a file to write to")

    flags = parser.add_argument_group("Flags")
    flags.add_argument("-b", "--backup", action="store_true", help="create a backup file in edit mode")
    flags.add_argument("-v", "--verbose", action="store_true", help="show additional information")
    flags.add_argument("-q", "--quiet", action="store_true", help="do not print to stdout")
    flags.add_argument("-T", "--trace", action="store_true", help="print a backtrace of any errors")
    flags.add_argument("-D", "--debug", action="store_true", help="print debugging information")
    flags.add_argument("-V", "--version", action="store_true", help="print the version")
    flags.add_argument("-N", "--no-color", action="store_true", help="disable color output")
    flags.add_argument("-M", "--no-environment", action="store_true", help="ignore SYMCRYPT_ARGS and the default key file")

    info = parser.add_argument_group("Help & examples")
    info.add_argument("-E", "--examples", action="store_true", help="show several examples")
    info.add_argument("-h", "--help", action="store_true", help="show this help")
    return parser


def _options_from(namespace: argparse.Namespace, vocabulary: Sequence[str]) -> OptionSet:
    return OptionSet({name: getattr(namespace, name, None) for name in vocabulary})


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def _with_default_key_file(options: OptionSet, settings: Settings) -> OptionSet:
    """Fall back to the default key file for encrypt/decrypt/edit."""
    if options.is_set("no_environment") or not options.any_set(_KEY_MODES):
        return options
    if options.any_set(KEY_SOURCE_OPTIONS) or not settings.default_key_file.is_file():
        return options
    logger.debug("Using default key file %s", settings.default_key_file)
    return options.replace(keyfile=str(settings.default_key_file))


def _resolve_command(options: OptionSet) -> CommandDescriptor:
    descriptor = resolve(options, DEFAULT_REGISTRY)
    if descriptor is not None:
        return descriptor
    if not options.any_set(KEY_SOURCE_OPTIONS):
        raise KeyNotFoundError(
            "Private key is required.",
            hint="Provide one with -k/--key, -K/--keyfile, --key-env or -i/--interactive.",
        )
    raise CommandNotFoundError(
        "Unable to determine what command to run.",
        supplied_options=options.present(),
    )


def _build_cache(options: OptionSet, settings: Settings) -> PasswordCache:
    if not options.is_set("cache_enabled"):
        return PasswordCache.disabled()

    from symcrypt.infra.cache_providers import create_provider

    ttl = options.integer("cache_timeout")
    if ttl is None:
        ttl = settings.cache_timeout
    if ttl <= 0:
        raise ConfigurationError(f"Cache timeout must be positive, got {ttl}.")
    provider = create_provider(options.string("cache_provider") or settings.cache_provider, settings)
    return PasswordCache(provider, ttl=ttl, verbose=options.is_set("verbose"))


def _build_context(
    descriptor: CommandDescriptor,
    options: OptionSet,
    settings: Settings,
    environ: Mapping[str, str],
    *,
    keychain: bool,
    help_text: str,
) -> AppContext:
    """Instantiate infra collaborators for one invocation."""
    from symcrypt.cli.examples import render_examples
    from symcrypt.cli.prompt import QuestionaryInput
    from symcrypt.infra.editor import ExternalEditor
    from symcrypt.infra.fernet_cipher import FernetCipher
    from symcrypt.infra.files import LocalFileStore
    from symcrypt.infra.keychain import KeyringKeychain

    cache = _build_cache(options, settings) if descriptor.requires_key else PasswordCache.disabled()
    editor = ExternalEditor(settings.editor_command()) if descriptor.name == "edit" else None
    return AppContext(
        cipher=FernetCipher(),
        input_port=QuestionaryInput(),
        files=LocalFileStore(),
        cache=cache,
        keychain=KeyringKeychain() if keychain else None,
        editor=editor,
        environ=environ,
        help_text=help_text,
        examples_text=render_examples(),
    )


def _deliver(result: CommandResult, options: OptionSet) -> None:
    """Send status lines to the console and the payload to its sink."""
    from symcrypt.cli.output import StdoutSink
    from symcrypt.infra.files import FileSink

    for message in result.messages:
        console.print(f"[green]{message}[/green]")
    if result.payload is None:
        return
    output = options.string("output")
    if output is not None:
        FileSink(output).write(result.payload)
        logger.info("Wrote output to %s", output)
        return
    if options.is_set("quiet"):
        return
    StdoutSink().write(result.payload)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    """Run the symcrypt CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.
    env:
        Environment mapping, ``os.environ`` by default.

    Returns
    -------
    int
        OS process exit code.
    """
    environ: Mapping[str, str] = dict(os.environ if env is None else env)
    arguments = list(sys.argv[1:] if argv is None else argv)
    keychain = keychain_available()
    parser = _build_parser(keychain=keychain)

    if not arguments:
        parser.print_help()
        return exit_codes.SUCCESS

    settings = load_settings(environ)
    if not _NO_ENVIRONMENT_FLAGS.intersection(arguments):
        arguments = [*settings.default_args, *arguments]

    namespace = parser.parse_args(arguments)
    options = _options_from(namespace, option_vocabulary(keychain_available=keychain))

    if options.is_set("no_color"):
        console.disable_color()
    setup_logging(
        verbose=options.is_set("verbose"),
        debug=options.is_set("debug"),
        color=not options.is_set("no_color"),
    )

    options = _with_default_key_file(options, settings)
    descriptor = _resolve_command(options)
    logger.debug("Resolved command %s from %s", descriptor.name, ", ".join(options.present()))

    app = _build_context(
        descriptor,
        options,
        settings,
        environ,
        keychain=keychain,
        help_text=parser.format_help(),
    )
    _deliver(execute(descriptor, options, app), options)
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def _trace_requested(argv: Sequence[str]) -> bool:
    for token in argv:
        if token == "--trace":
            return True
        if token.startswith("-") and not token.startswith("--") and "T" in token[1:]:
            return True
    return False


def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except SymcryptError as exc:
        if _trace_requested(sys.argv[1:]):
            console.print_exception()
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        if _trace_requested(sys.argv[1:]):
            console.print_exception()
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
