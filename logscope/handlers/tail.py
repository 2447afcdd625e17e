"""
TailHandler — tail_logs: the last N entries, oldest first
"""

from ..output import resolve_format, format_entries
from .base import BaseHandler, add_job_arguments, add_output_arguments, job_fields, output_fields
from .requests import TailRequest


class TailHandler(BaseHandler):

    operation = "tail_logs"

    def execute(self, request: TailRequest):
        fmt = resolve_format(request.format, raw=request.raw)
        with self.engine(request) as engine:
            entries = engine.tail(request.tail)
            total = engine.info().total_rows
        return {
            "entries": format_entries(entries, fmt, request.preserve_ansi),
            "total_rows": total,
        }


# =============================================================================
# Command Registration
# =============================================================================

COMMAND_NAME = 'tail'


def register_parser(subparsers):
    p = subparsers.add_parser('tail', help='Show the last entries of a job log')
    add_job_arguments(p)
    p.add_argument('--tail', '-n', type=int, default=10,
                   help='Number of entries (default: 10)')
    add_output_arguments(p)


def handle(cli, args):
    request = TailRequest(tail=args.tail, **job_fields(args), **output_fields(cli, args))
    return TailHandler(cli).run(request)
