import argparse
import logging
import os
import sys

from bitops import BitReader, BitWriter
from errors import HuffError
from processor import DebugLevel, compress, decompress

SUFFIX = ".hf"  #: Extension appended to compressed files
UNHUFF_SUFFIX = ".unhf"  #: Extension used when the input has no ``.hf`` suffix

DEBUG_LEVELS = {
    "off": DebugLevel.OFF,
    "low": DebugLevel.LOW,
    "high": DebugLevel.HIGH,
}


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Huffman coding compressor for single files"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    for name, alias, help_text in (
        ("compress", "c", "Compress a file"),
        ("decompress", "d", "Decompress a file produced by 'compress'"),
    ):
        sub = subparsers.add_parser(name, aliases=[alias], help=help_text)
        sub.add_argument("input", help="File to read")
        sub.add_argument(
            "-o", "--output", default=None,
            help="Output file path (default: derived from input)",
        )
        sub.add_argument(
            "-d",
            "--debug",
            choices=sorted(DEBUG_LEVELS),
            default="off",
            help="Diagnostic output level",
        )
        sub.add_argument(
            "-q",
            "--quiet",
            action="store_true",
            help="Do not print size statistics",
        )

    return parser


def default_output(input_path: str, cmd: str) -> str:
    """Derive the output path from the input path.

    Compression appends ``.hf``; decompression strips it, or appends
    ``.unhf`` when the input does not end in ``.hf``.

    :param input_path: Path of the file being processed.
    :type input_path: str
    :param cmd: Either ``"compress"`` or ``"decompress"``.
    :type cmd: str
    :returns: Output path.
    :rtype: str
    """
    if cmd == "compress":
        return input_path + SUFFIX
    if input_path.endswith(SUFFIX) and len(input_path) > len(SUFFIX):
        return input_path[:-len(SUFFIX)]
    return input_path + UNHUFF_SUFFIX


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


def _print_stats(before: int, after: int) -> None:
    print("Size before: ", _fmt_bytes(before))
    print("Size after: ", _fmt_bytes(after))
    if after > 0:
        print(f"Ratio: {before / after:.2f}")


def compress_file(input_path: str, output_path: str,
                  debug: DebugLevel = DebugLevel.OFF, quiet: bool = False) -> None:
    """Compress ``input_path`` into ``output_path``.

    :param input_path: File to compress.
    :type input_path: str
    :param output_path: Destination file, overwritten if present.
    :type output_path: str
    :param debug: Diagnostic verbosity.
    :type debug: DebugLevel
    :param quiet: Whether to skip printing size statistics.
    :type quiet: bool
    :returns: None
    :rtype: None
    """
    with open(input_path, "rb") as src, open(output_path, "wb") as out:
        compress(BitReader(src), BitWriter(out), debug)
    if not quiet:
        _print_stats(os.path.getsize(input_path), os.path.getsize(output_path))


def decompress_file(input_path: str, output_path: str,
                    debug: DebugLevel = DebugLevel.OFF, quiet: bool = False) -> None:
    """Decompress ``input_path`` into ``output_path``.

    A partially written output file is removed when decoding fails.

    :param input_path: Compressed file.
    :type input_path: str
    :param output_path: Destination file, overwritten if present.
    :type output_path: str
    :param debug: Diagnostic verbosity.
    :type debug: DebugLevel
    :param quiet: Whether to skip printing size statistics.
    :type quiet: bool
    :returns: None
    :rtype: None
    :raises HuffError: If the input is not a valid compressed stream.
    """
    try:
        with open(input_path, "rb") as src, open(output_path, "wb") as out:
            decompress(BitReader(src), BitWriter(out), debug)
    except HuffError:
        os.remove(output_path)
        raise
    if not quiet:
        _print_stats(os.path.getsize(input_path), os.path.getsize(output_path))


def main(argv=None) -> int:
    """Entry point for the CLI tool.

    :param argv: Argument list, ``sys.argv[1:]`` when omitted.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)
    debug = DEBUG_LEVELS[args.debug]
    logging.basicConfig(
        level=logging.DEBUG if debug >= DebugLevel.HIGH else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    cmd = "compress" if args.cmd in ("compress", "c") else "decompress"
    output = args.output or default_output(args.input, cmd)
    try:
        if cmd == "compress":
            compress_file(args.input, output, debug, args.quiet)
        else:
            decompress_file(args.input, output, debug, args.quiet)
    except FileNotFoundError as e:
        print(f"[!] File not found: {e.filename}")
        return 1
    except HuffError as e:
        print(f"[!] Cannot decompress {args.input}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
