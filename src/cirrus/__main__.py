"""Entry point for ``python -m cirrus``."""

from cirrus.cli.main import main


if __name__ == "__main__":
    main()
