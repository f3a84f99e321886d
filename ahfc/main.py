"""
AHFC - Main Entry Point

Usage:
    ahfc encrypt <input> <output> [--lite | --normal | --beast]
    ahfc decrypt <input> <output>
    ahfc info <input>
"""

import argparse
import logging
import sys
from typing import List, Optional

from tqdm import tqdm

from .auth.password import FilePasswordSource, PromptPasswordSource
from .core_crypto.modes import MODES, resolve_mode
from .errors import AHFCError
from .files.file_crypto import FileEncryptor, get_file_info


logger = logging.getLogger(__name__)

BANNER = """
  ╔════════════════════════════════════════════════════╗
  ║                 AHFC File Encryptor v1             ║
  ╚════════════════════════════════════════════════════╝
"""


class TqdmProgress:
    """Progress sink rendering block counts with tqdm."""

    def __init__(self, desc: str, disable: bool = False):
        self._desc = desc
        self._disable = disable
        self._bar: Optional[tqdm] = None
        self.done = 0

    def __call__(self, done: int, total: int) -> None:
        if self._bar is None:
            self._bar = tqdm(total=total, desc=self._desc, unit='block',
                             leave=False, disable=self._disable)
        self._bar.update(done - self.done)
        self.done = done

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ahfc',
        description='Password-based file encryption (AHFCv1 containers).',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--password-file', type=str,
                        help='Read the password from the first line of this file')
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')

    sub = parser.add_subparsers(dest='command', required=True)

    enc = sub.add_parser('encrypt', help='Encrypt a file')
    enc.add_argument('input')
    enc.add_argument('output')
    group = enc.add_mutually_exclusive_group()
    for mode in MODES.values():
        group.add_argument(
            f'--{mode.name}', f'-{mode.name[0]}',
            dest='mode', action='store_const', const=mode.name,
            help=f'{mode.label} mode ({mode.alias}, min password {mode.min_password_length})',
        )

    dec = sub.add_parser('decrypt', help='Decrypt a file')
    dec.add_argument('input')
    dec.add_argument('output')

    info = sub.add_parser('info', help='Show container metadata without decrypting')
    info.add_argument('input')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for AHFC."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    logger.debug("Command: %s", args.command)

    if args.password_file:
        source = FilePasswordSource(args.password_file)
    else:
        source = PromptPasswordSource()

    try:
        if args.command == 'info':
            for key, value in get_file_info(args.input).items():
                print(f"  {key}: {value}")
            return 0

        print(BANNER)
        progress = TqdmProgress(
            'Encrypting' if args.command == 'encrypt' else 'Decrypting',
            disable=args.no_progress,
        )
        encryptor = FileEncryptor(source, progress=progress)
        try:
            if args.command == 'encrypt':
                mode = resolve_mode(args.mode)
                print(f"Mode selected: {mode}")
                print(f"Password must be at least {mode.min_password_length} characters.")
                encryptor.encrypt_file(args.input, args.output, mode)
                print("File encrypted successfully!")
            else:
                encryptor.decrypt_file(args.input, args.output)
                print("File decrypted successfully!")
        finally:
            progress.close()
    except AHFCError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Output written to: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
