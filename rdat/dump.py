"""
A commandline script to print the contents of DXIL runtime data (RDAT) files.
"""
from __future__ import annotations

import argparse
import logging
import sys

import colorama

import rdat

from rdat.lib import json
from rdat.lib.dxil.constants import StringDeduplication
from rdat.lib.dxil.errors import RuntimeDataError
from rdat.lib.dxil.reflection import DxilLibraryDesc, decode
from rdat.lib.environment import LogLevel, environment, logger
from rdat.lib.tools import exception_to_string


def colored(text: str, color: str) -> str:
    if environment.colorless.value:
        return text
    return F'{color}{text}{colorama.Style.RESET_ALL}'


def summary(desc: DxilLibraryDesc) -> str:
    """
    Render a short human-readable listing of the given library description.
    """
    lines = [F'{desc.num_functions} functions, {desc.num_resources} resources']
    for resource in desc.resources:
        cls = getattr(resource.resource_class, 'name', resource.resource_class)
        lines.append(
            F'  {colored(resource.name, colorama.Fore.YELLOW)} {cls} id={resource.id} '
            F'space={resource.space} [{resource.lower_bound}, {resource.upper_bound}]')
    for function in desc.functions:
        kind = getattr(function.shader_kind, 'name', function.shader_kind)
        lines.append(F'  {colored(function.unmangled_name, colorama.Fore.CYAN)} ({kind}) {function.name}')
        for resource in function.resources:
            lines.append(F'    uses {resource.name}')
        for dependency in function.function_dependencies:
            lines.append(F'    calls {dependency}')
    return '\n'.join(lines)


def read_input(path: str) -> bytes:
    if path == '-':
        return sys.stdin.buffer.read()
    with open(path, 'rb') as stream:
        return stream.read()


def main(argv=None) -> int:
    """
    Main routine of the RDAT dump tool.
    """
    colorama.just_fix_windows_console()

    argp = argparse.ArgumentParser(
        prog='rdat-dump',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=F'rdat-dump {rdat.__version__}: decode DXIL runtime data and print the library description.')
    argp.add_argument(
        'files',
        metavar='file',
        nargs='*',
        default=['-'],
        help='RDAT files to decode; standard input is read when none is given or the name is a dash.'
    )
    mode = argp.add_mutually_exclusive_group()
    mode.add_argument(
        '-j', '--json',
        dest='summary',
        action='store_false',
        help='Print the library description as JSON. This is the default.'
    )
    mode.add_argument(
        '-s', '--summary',
        dest='summary',
        action='store_true',
        help='Print a short listing instead of JSON.'
    )
    argp.add_argument(
        '-d', '--dedup',
        choices=[d.value for d in StringDeduplication],
        default=None,
        help='How decoded strings are shared; the default is taken from RDAT_DEDUPLICATION.'
    )
    argp.add_argument(
        '-v', '--verbose',
        action='count',
        default=None,
        help='Increase the log level; can be given twice. The default is taken from RDAT_VERBOSITY.'
    )
    argp.add_argument(
        '-V', '--version',
        action='version',
        version=rdat.__version__,
    )
    argp.set_defaults(summary=False)
    args = argp.parse_args(argv)

    log = logger('rdat')
    if args.verbose is not None:
        level = LogLevel.FromVerbosity(args.verbose)
        for name in ('rdat', 'rdat.lib.dxil.tables', 'rdat.lib.dxil.runtime', 'rdat.lib.dxil.reflection'):
            logging.getLogger(name).setLevel(level)

    failures = 0
    for path in args.files:
        try:
            data = read_input(path)
        except OSError as E:
            log.error(F'unable to read {path}: {exception_to_string(E)}')
            failures += 1
            continue
        try:
            desc = decode(data, args.dedup)
        except RuntimeDataError as E:
            log.error(F'unable to decode {path}: {exception_to_string(E)}')
            failures += 1
            continue
        if len(args.files) > 1:
            print(colored(path, colorama.Style.BRIGHT))
        if args.summary:
            print(summary(desc))
        else:
            print(json.dumps(desc).decode('utf8'))
    return 1 if failures else 0


def run():
    sys.exit(main())


if __name__ == '__main__':
    run()
