"""Main entry point for the daybank package."""

from daybank.tracker.cli import app


def main():
    """Run the daybank command line interface."""
    app()


if __name__ == "__main__":
    main()
