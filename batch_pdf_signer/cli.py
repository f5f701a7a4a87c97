"""Command line front end: arguments in, exit code out."""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .batch import BatchOrchestrator, ProcessStatus, SigningConfig
from .naming import DEFAULT_EXTENSION
from .signer import PdfSigner, SignerError

DEFAULT_OUT_SUFFIX = "_signed"
DEFAULT_ENTITY_FILE = "entity.txt"
DEFAULT_SIGNATURE_IMAGE = "signature.jpg"

EXIT_CODE_SUCCESS = 0
EXIT_CODE_PARSE_ERR = 1
EXIT_CODE_NO_COMMAND = 2
EXIT_CODE_SOME_SIG_FAILED = 3
EXIT_CODE_ALL_SIG_FAILED = 4

EXIT_CODES = {
    ProcessStatus.SUCCESS: EXIT_CODE_SUCCESS,
    ProcessStatus.NO_COMMAND: EXIT_CODE_NO_COMMAND,
    ProcessStatus.PARTIAL_FAILURE: EXIT_CODE_SOME_SIG_FAILED,
    ProcessStatus.ALL_FAILED: EXIT_CODE_ALL_SIG_FAILED,
}

EPILOG = f"""\
exit codes:
  {EXIT_CODE_SUCCESS}  all files signed (or nothing matched)
  {EXIT_CODE_PARSE_ERR}  command line or signer setup error
  {EXIT_CODE_NO_COMMAND}  nothing to do
  {EXIT_CODE_SOME_SIG_FAILED}  some files could not be signed
  {EXIT_CODE_ALL_SIG_FAILED}  no file could be signed

examples:
  batch-pdf-signer -d signed/ contracts/*.pdf
  batch-pdf-signer --in-file input.pdf --out-file signed_output.pdf
"""


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser exiting with the parse error code."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_CODE_PARSE_ERR, f"Unable to parse command line (Use -h for the help)\n{message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(
        prog="batch-pdf-signer",
        description="Sign PDF documents in batch.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("files", nargs="*", metavar="file",
                        help="PDF file or wildcard pattern (* and ?) in the last path segment")
    parser.add_argument("-v", "--version", action="store_true", help="print version and exit")

    output = parser.add_argument_group("output")
    output.add_argument("-d", "--out-directory", default="",
                        help="directory for signed files, used as a plain prefix (include the trailing separator)")
    output.add_argument("--out-prefix", default="", help="prefix for signed file names")
    output.add_argument("--out-suffix", default=DEFAULT_OUT_SUFFIX,
                        help=f"suffix for signed file names (default: {DEFAULT_OUT_SUFFIX})")
    output.add_argument("--assume-extension", action="store_true",
                        help=f"append {DEFAULT_EXTENSION} to outputs of files without that extension")
    output.add_argument("--in-file", help="single input file, used together with --out-file")
    output.add_argument("--out-file", help="single output file, used together with --in-file")
    output.add_argument("--dry-run", action="store_true", help="only print what would be signed")

    signing = parser.add_argument_group("signing")
    signing.add_argument("-e", "--entity-file", default=DEFAULT_ENTITY_FILE,
                         help=f"key=value entity data file (default: {DEFAULT_ENTITY_FILE})")
    signing.add_argument("-s", "--signature-image", default=DEFAULT_SIGNATURE_IMAGE,
                         help=f"signature image (default: {DEFAULT_SIGNATURE_IMAGE})")
    signing.add_argument("--no-flatten", dest="flatten", action="store_false",
                         help="keep form fields editable")
    return parser


def config_from_args(args: argparse.Namespace) -> SigningConfig:
    """Build the batch configuration from parsed arguments."""
    return SigningConfig(
        patterns=tuple(args.files),
        in_file=args.in_file,
        out_file=args.out_file,
        out_dir=args.out_directory,
        out_prefix=args.out_prefix,
        out_suffix=args.out_suffix,
        assume_default_extension=args.assume_extension,
    )


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line tool.

    Args:
        argv: Arguments without the program name, ``sys.argv[1:]`` if None

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"batch-pdf-signer version {__version__}")

    config = config_from_args(args)
    if not config.has_work():
        if args.version:
            return EXIT_CODE_SUCCESS
        parser.print_help()
        return EXIT_CODES[ProcessStatus.NO_COMMAND]

    if args.dry_run:
        for resolved in BatchOrchestrator().plan(config):
            print(f"{resolved.input_path} -> {resolved.output_path}")
        return EXIT_CODE_SUCCESS

    signer = PdfSigner(args.entity_file, args.signature_image, flatten=args.flatten)
    try:
        signer.validate()
    except SignerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CODE_PARSE_ERR

    status = BatchOrchestrator(signer).run(config)

    if status is ProcessStatus.SUCCESS:
        print("\n✅ PDF signing completed successfully!")
    elif status is ProcessStatus.PARTIAL_FAILURE:
        print("\n❌ Some PDF files could not be signed!")
    else:
        print("\n❌ PDF signing failed!")

    return EXIT_CODES[status]


def main() -> None:
    """Entry point of the ``batch-pdf-signer`` script."""
    sys.exit(run())
