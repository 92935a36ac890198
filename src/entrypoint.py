import argparse
import time

import config
from runner import run_once


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Text each cohort the Fortnite stats its players gained.")
    parser.add_argument("--once", action="store_true", help="run a single report cycle and exit")
    parser.add_argument("--dry-run", action="store_true", help="build and log the reports without texting anyone")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    send = not args.dry_run

    while True:
        sleep_seconds = config.get_update_interval()

        try:
            run_once(send=send)
        except Exception as e:
            print(f"❌ Report cycle failed: {e}")
            if args.once:
                raise

        if args.once:
            return

        print(f"Sleeping {sleep_seconds} seconds before next run...")
        time.sleep(sleep_seconds)


if __name__ == "__main__":
    main()
