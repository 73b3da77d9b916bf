"""BuildSync: broadcast/offer marketplace with multi-actor state sync."""

__version__ = "0.1.0"


def main():
    from buildsync.cli import app

    app()


if __name__ == "__main__":
    main()
