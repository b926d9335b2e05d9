import sys

import click

from audiokiosk.cli import cli
from audiokiosk.common import KioskExpectedError


def main() -> None:
    try:
        cli()
    except KioskExpectedError as e:
        click.secho(f"{e.__class__.__module__}.{e.__class__.__name__}: ", fg="red", nl=False)
        click.secho(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
