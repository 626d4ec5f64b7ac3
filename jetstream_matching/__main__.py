"""Command-line entry point: ``python -m jetstream_matching [--kind KIND ...]``."""

import argparse

from .models import EntityKind
from .workflows.reindex import DEFAULT_BATCH_SIZE, run


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        prog="jetstream_matching",
        description="Re-embed stored entities into their vector namespaces.",
    )
    parser.add_argument(
        "--kind",
        dest="kinds",
        action="append",
        choices=[kind.value for kind in EntityKind],
        help="entity type to reindex; repeat for several (default: all)",
    )
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    args = parser.parse_args(argv)

    kinds = [EntityKind(kind) for kind in args.kinds] if args.kinds else None
    run(kinds, batch_size=args.batch_size)


if __name__ == "__main__":
    main()
