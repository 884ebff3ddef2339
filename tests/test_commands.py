"""Tests for command execution (core/commands.py).

All collaborators are in-memory fakes; the cipher is real.

Coverage:
* Resolve-then-execute round trips for encrypt and decrypt.
* Key generation, password protection and keychain management.
* Editing an encrypted file, with and without changes or backup.
* Informational commands.
* Key resolution happens only for commands that need a key.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import DictKeychain, FakeFileStore, ScriptedInput
from symcrypt.core.command_resolver import DEFAULT_REGISTRY, resolve_or_raise
from symcrypt.core.commands import (
    CONFIRM_PASSWORD_PROMPT,
    NEW_PASSWORD_PROMPT,
    RUNNERS,
    execute,
)
from symcrypt.core.context import AppContext
from symcrypt.core.models import CommandDescriptor, CommandResult, OptionSet
from symcrypt.exceptions import (
    CipherError,
    ContentError,
    EditorError,
    KeychainError,
    PasswordMismatchError,
    SymcryptError,
)
from symcrypt.infra.fernet_cipher import FernetCipher
from symcrypt.version import __version__


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class StubEditor:
    """Editor that applies a fixed transformation."""

    def __init__(self, transform=lambda content: content) -> None:  # type: ignore[no-untyped-def]
        self.transform = transform
        self.calls: list[tuple[bytes, str]] = []

    def edit(self, content: bytes, *, suffix: str = "") -> bytes:
        self.calls.append((content, suffix))
        return self.transform(content)


def _app(
    cipher: FernetCipher,
    *answers: str,
    files: FakeFileStore | None = None,
    keychain: DictKeychain | None = None,
    editor: StubEditor | None = None,
) -> AppContext:
    return AppContext(
        cipher=cipher,
        input_port=ScriptedInput(answers),
        files=files or FakeFileStore(),
        keychain=keychain,
        editor=editor,
        help_text="usage: symcrypt",
        examples_text="# examples",
    )


def _run(app: AppContext, **flags: object) -> CommandResult:
    options = OptionSet(flags)  # type: ignore[arg-type]
    return execute(resolve_or_raise(options, DEFAULT_REGISTRY), options, app)


# ---------------------------------------------------------------------------
# Encrypt / decrypt
# ---------------------------------------------------------------------------

class TestEncryptDecrypt:
    def test_every_descriptor_has_a_runner(self) -> None:
        assert {d.name for d in DEFAULT_REGISTRY} == set(RUNNERS)

    def test_string_roundtrip(self, cipher: FernetCipher, private_key: bytes) -> None:
        app = _app(cipher)
        key = private_key.decode()

        encrypted = _run(app, key=key, encrypt=True, string="hello")
        assert isinstance(encrypted.payload, str)
        assert encrypted.payload != "hello"

        decrypted = _run(app, key=key, decrypt=True, string=encrypted.payload)
        assert decrypted.payload == b"hello"

    def test_file_roundtrip(self, cipher: FernetCipher, private_key: bytes) -> None:
        files = FakeFileStore(**{"plain.txt": b"line one\nline two\n"})
        app = _app(cipher, files=files)
        key = private_key.decode()

        encrypted = _run(app, key=key, encrypt=True, file="plain.txt")
        files.write("secret.enc", str(encrypted.payload).encode() + b"\n")

        decrypted = _run(app, key=key, decrypt=True, file="secret.enc")
        assert decrypted.payload == b"line one\nline two\n"

    def test_stdin(self, cipher: FernetCipher, private_key: bytes) -> None:
        files = FakeFileStore(stdin=b"from stdin")
        result = _run(_app(cipher, files=files), key=private_key.decode(), encrypt=True, file="-")
        assert cipher.decrypt(str(result.payload).encode(), private_key) == b"from stdin"

    def test_string_wins_over_file(self, cipher: FernetCipher, private_key: bytes) -> None:
        result = _run(_app(cipher), key=private_key.decode(), encrypt=True, string="s", file="missing")
        assert cipher.decrypt(str(result.payload).encode(), private_key) == b"s"

    def test_decrypt_with_wrong_key(self, cipher: FernetCipher, private_key: bytes) -> None:
        token = cipher.encrypt(b"hello", private_key).decode()
        other = cipher.generate_key().decode()
        with pytest.raises(CipherError):
            _run(_app(cipher), key=other, decrypt=True, string=token)

    def test_protected_key_is_unlocked(
        self, cipher: FernetCipher, private_key: bytes, protected_key: str
    ) -> None:
        result = _run(_app(cipher, "secret"), key=protected_key, encrypt=True, string="hi")
        assert cipher.decrypt(str(result.payload).encode(), private_key) == b"hi"


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

class TestEdit:
    def _files(self, cipher: FernetCipher, key: bytes, content: bytes) -> FakeFileStore:
        return FakeFileStore(**{"notes.enc": cipher.encrypt(content, key) + b"\n"})

    def test_saves_changes(self, cipher: FernetCipher, private_key: bytes) -> None:
        files = self._files(cipher, private_key, b"draft")
        editor = StubEditor(lambda content: content + b" v2")
        result = _run(
            _app(cipher, files=files, editor=editor),
            key=private_key.decode(), edit=True, file="notes.enc",
        )
        assert cipher.decrypt(files.files["notes.enc"], private_key) == b"draft v2"
        assert editor.calls == [(b"draft", ".enc")]
        assert result.payload is None
        assert result.messages == ("Saved changes to notes.enc",)
        assert "notes.enc.bak" not in files.files

    def test_backup(self, cipher: FernetCipher, private_key: bytes) -> None:
        files = self._files(cipher, private_key, b"draft")
        original = files.files["notes.enc"]
        editor = StubEditor(lambda content: b"changed")
        result = _run(
            _app(cipher, files=files, editor=editor),
            key=private_key.decode(), edit=True, file="notes.enc", backup=True,
        )
        assert files.files["notes.enc.bak"] == original
        assert result.messages[0] == "Backup saved to notes.enc.bak"

    def test_unchanged_is_not_written(self, cipher: FernetCipher, private_key: bytes) -> None:
        files = self._files(cipher, private_key, b"draft")
        original = files.files["notes.enc"]
        result = _run(
            _app(cipher, files=files, editor=StubEditor()),
            key=private_key.decode(), edit=True, file="notes.enc", backup=True,
        )
        assert result.messages == ("No changes were made.",)
        assert files.files["notes.enc"] == original
        assert "notes.enc.bak" not in files.files

    def test_stdin_rejected(self, cipher: FernetCipher, private_key: bytes) -> None:
        with pytest.raises(ContentError):
            _run(_app(cipher, editor=StubEditor()), key=private_key.decode(), edit=True, file="-")

    def test_no_editor(self, cipher: FernetCipher, private_key: bytes) -> None:
        with pytest.raises(EditorError):
            _run(_app(cipher), key=private_key.decode(), edit=True, file="notes.enc")


# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------

class TestGenerateKey:
    def test_plain_key(self, cipher: FernetCipher) -> None:
        result = _run(_app(cipher), generate=True)
        assert isinstance(result.payload, str)
        assert len(result.payload) == 44
        assert result.messages == ()

    def test_password_protected(self, cipher: FernetCipher) -> None:
        app = _app(cipher, "pw", "pw")
        result = _run(app, generate=True, password=True)
        key = cipher.decrypt_with_password(str(result.payload).encode(), "pw")
        assert len(key) == 44
        assert app.input_port.prompts == [NEW_PASSWORD_PROMPT, CONFIRM_PASSWORD_PROMPT]  # type: ignore[attr-defined]

    def test_password_mismatch(self, cipher: FernetCipher) -> None:
        with pytest.raises(PasswordMismatchError, match="do not match"):
            _run(_app(cipher, "pw", "other"), generate=True, password=True)

    def test_empty_password(self, cipher: FernetCipher) -> None:
        with pytest.raises(PasswordMismatchError, match="empty"):
            _run(_app(cipher, ""), generate=True, password=True)

    def test_saved_to_keychain(self, cipher: FernetCipher) -> None:
        keychain = DictKeychain()
        result = _run(_app(cipher, keychain=keychain), generate=True, keychain="work")
        assert keychain.entries["work"] == str(result.payload).encode()
        assert result.messages == ("Key saved to the keychain as 'work'",)

    def test_keychain_required(self, cipher: FernetCipher) -> None:
        with pytest.raises(KeychainError):
            _run(_app(cipher), generate=True, keychain="work")


class TestPasswordProtectKey:
    def test_protects_plain_key(self, cipher: FernetCipher, private_key: bytes) -> None:
        result = _run(_app(cipher, "pw", "pw"), key=private_key.decode(), password=True)
        assert cipher.decrypt_with_password(str(result.payload).encode(), "pw") == private_key

    def test_reprotects_protected_key(
        self, cipher: FernetCipher, private_key: bytes, protected_key: str
    ) -> None:
        app = _app(cipher, "secret", "new", "new")
        result = _run(app, key=protected_key, password=True)
        assert cipher.decrypt_with_password(str(result.payload).encode(), "new") == private_key


class TestKeychainCommands:
    def test_add_stores_material_as_given(self, cipher: FernetCipher, protected_key: str) -> None:
        keychain = DictKeychain()
        result = _run(_app(cipher, "secret", keychain=keychain), key=protected_key, keychain="work")
        assert keychain.entries["work"] == protected_key.encode()
        assert result.payload is None

    def test_delete(self, cipher: FernetCipher, private_key: bytes) -> None:
        keychain = DictKeychain(work=private_key.decode())
        result = _run(_app(cipher, keychain=keychain), keychain_delete="work")
        assert "work" not in keychain.entries
        assert result.messages == ("Deleted 'work' from the keychain",)

    def test_print_from_keychain(self, cipher: FernetCipher, private_key: bytes) -> None:
        keychain = DictKeychain(work=private_key.decode())
        result = _run(_app(cipher, keychain=keychain), keychain="work")
        assert result.payload == private_key.decode()


# ---------------------------------------------------------------------------
# Informational commands
# ---------------------------------------------------------------------------

class TestInformational:
    def test_version(self, cipher: FernetCipher) -> None:
        assert _run(_app(cipher), version=True).payload == f"symcrypt {__version__}"

    def test_help(self, cipher: FernetCipher) -> None:
        assert _run(_app(cipher), help=True).payload == "usage: symcrypt"

    def test_examples(self, cipher: FernetCipher) -> None:
        assert _run(_app(cipher), examples=True).payload == "# examples"

    def test_print_key(self, cipher: FernetCipher, private_key: bytes) -> None:
        assert _run(_app(cipher), key=private_key.decode()).payload == private_key.decode()

    def test_informational_commands_skip_key_resolution(self, cipher: FernetCipher) -> None:
        app = _app(cipher)
        app.key_resolver = MagicMock(side_effect=AssertionError("resolved a key"))  # type: ignore[method-assign]
        _run(app, version=True, key="not a key!")


# ---------------------------------------------------------------------------
# execute()
# ---------------------------------------------------------------------------

class TestExecute:
    def test_unknown_runner(self, cipher: FernetCipher) -> None:
        descriptor = CommandDescriptor(name="mystery", required_option_groups=(), precedence_rank=1)
        with pytest.raises(SymcryptError, match="No runner"):
            execute(descriptor, OptionSet(), _app(cipher))
