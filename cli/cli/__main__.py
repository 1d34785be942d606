"""Run the SchemaSync CLI via ``python -m cli`` or the ``schemasync`` script."""

from __future__ import annotations

from cli.app import app

PROG_NAME = "schemasync"


def main() -> None:
    # Keep usage lines stable whether launched as a module or a script.
    app(prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
