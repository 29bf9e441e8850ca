"""Allow flare to be executable through `python -m flare`."""
from flare.cli import cli


if __name__ == "__main__":  # pragma: no cover
    cli(prog_name="flare")
