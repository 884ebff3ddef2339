"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.  Everything goes to stderr;
stdout carries command payloads only.
"""

from __future__ import annotations

import re
import sys
import traceback
from typing import Any

from symcrypt.exceptions import EnvironmentError

_MARKUP = re.compile(r"\[/?[a-z ]+\]")


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console(*, no_color: bool = False) -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True, no_color=no_color)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def __init__(self) -> None:
		self.no_color = False

	def disable_color(self) -> None:
		self.no_color = True

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console(no_color=self.no_color)
		except EnvironmentError:
			print(*(_MARKUP.sub("", str(obj)) for obj in objects), file=sys.stderr)
			return
		rich_console.print(*objects)

	def print_exception(self) -> None:
		"""Render the exception currently being handled."""
		try:
			rich_console = get_rich_console(no_color=self.no_color)
		except EnvironmentError:
			traceback.print_exc(file=sys.stderr)
			return
		rich_console.print_exception()


console = _ConsoleProxy()
