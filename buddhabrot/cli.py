import argparse


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Renders a Buddhabrot orbit-density image.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--load", type=str, metavar="PATH", help="Path to settings file.", default="./saves/buddhabrot.yaml"
    )
    parser.add_argument(
        "--output", type=str, metavar="DIR", help="Directory for snapshots.", default="./exports"
    )
    parser.add_argument(
        "--workers", type=int, help="Parallel scan workers, 0 uses all numba threads.", default=0
    )
    parser.add_argument("--log-file", type=str, metavar="PATH", help="Log file.", default="log.txt")
    parser.add_argument("--save", type=str, metavar="PATH", help="Write the effective settings to a YAML file.")
    parser.add_argument("--preview", action="store_true", help="Print an ASCII preview of the result.")
    return parser.parse_args(argv)
