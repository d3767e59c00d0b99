import argparse
import logging
import sys
from pathlib import Path

from billprint import PrintService, PrintSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Silent receipt printing")
    parser.add_argument("bill", nargs="?", help="HTML bill file to print")
    parser.add_argument("--printer", help="target printer for --raw")
    parser.add_argument("--raw", metavar="TEXT", help="spool literal text")
    parser.add_argument("--list", action="store_true", help="list installed printers")
    parser.add_argument("--default", action="store_true", help="show the default printer")
    parser.add_argument("--check", action="store_true", help="check that a printer is available")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = PrintSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    service = PrintService(settings=settings)

    if args.list:
        result = service.list_printers()
    elif args.default:
        result = service.get_default_printer()
    elif args.check:
        result = service.check_printer_available()
    elif args.raw is not None:
        result = service.print_raw_text(args.raw, args.printer)
    elif args.bill:
        markup = Path(args.bill).read_text(encoding="utf-8")
        result = service.silent_print(markup)
    else:
        build_parser().print_help()
        return 2

    if not result.success:
        print(f"error [{result.kind.value}]: {result.error}", file=sys.stderr)
        return 1
    if isinstance(result.value, list):
        print("\n".join(result.value))
    else:
        print(result.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
