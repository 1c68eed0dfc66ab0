import sys
import logging

import yaml

from buddhabrot.cli import parse_args
from buddhabrot.scanner import BuddhabrotScanner, render_escape_time
from buddhabrot.settings import load_settings, save_settings
from buddhabrot.snapshots import SnapshotWriter, ascii_preview


def setup_logging(log_file):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    # force replaces handlers left by an earlier call
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def render(settings, output_dir, workers=0):
    """Render according to settings, writing snapshots to output_dir. Returns the final buffer."""
    writer = SnapshotWriter(output_dir, settings)
    if settings.mode == "escape_time":
        image = render_escape_time(settings)
        writer(image)
        return image

    scanner = BuddhabrotScanner(settings, workers=workers)
    return scanner.scan(on_snapshot=writer)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_file)

    try:
        logging.info(f"Loading settings from {args.load}")
        settings = load_settings(args.load)
        if args.save:
            save_settings(settings, args.save)
            logging.info(f"Settings saved to {args.save}")
        image = render(settings, args.output, workers=args.workers)
    except (ValueError, KeyError, OSError, yaml.YAMLError) as e:
        logging.error(f"Render aborted: {e}")
        return 1

    if args.preview:
        print(ascii_preview(image))
    return 0


if __name__ == "__main__":
    sys.exit(main())
