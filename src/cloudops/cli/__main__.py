"""Entry point for ``python -m cloudops.cli`` and the ``cloudops`` script."""

from __future__ import annotations

from .app import app


def main() -> None:
    app(prog_name="cloudops")


if __name__ == "__main__":
    main()
