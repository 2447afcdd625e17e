"""
ReadHandler — read_logs: one page of entries from a row offset

Pages are pulled lazily; rows past seek + limit are never read.
"""

from ..output import resolve_format, format_entries
from .base import BaseHandler, add_job_arguments, add_output_arguments, job_fields, output_fields
from .requests import ReadRequest, DEFAULT_PAGE_LIMIT


class ReadHandler(BaseHandler):

    operation = "read_logs"

    def execute(self, request: ReadRequest):
        fmt = resolve_format(request.format, raw=request.raw)
        with self.engine(request) as engine:
            entries = format_entries(
                engine.read(seek=request.seek, limit=request.limit),
                fmt,
                request.preserve_ansi,
            )
        return {"entries": entries}


# =============================================================================
# Command Registration
# =============================================================================

COMMAND_NAME = 'read'


def register_parser(subparsers):
    p = subparsers.add_parser('read', help='Read a page of entries from a job log')
    add_job_arguments(p)
    p.add_argument('--seek', type=int, default=0,
                   help='First row number to read (default: 0)')
    p.add_argument('--limit', type=int, default=DEFAULT_PAGE_LIMIT,
                   help=f'Maximum entries, 0 for all (default: {DEFAULT_PAGE_LIMIT})')
    add_output_arguments(p)


def handle(cli, args):
    request = ReadRequest(seek=args.seek, limit=args.limit, **job_fields(args), **output_fields(cli, args))
    return ReadHandler(cli).run(request)
