"""Entrypoint for `python -m locfav_db`."""

from .cli import main


if __name__ == "__main__":
    main()
