"""Run the nvs CLI via ``python -m nvs_cli``."""


def run() -> int:
    from .main import main as cli_main

    return cli_main()


def main() -> int:
    """Target of the ``nvs`` console script."""
    return run()


if __name__ == "__main__":
    raise SystemExit(run())
