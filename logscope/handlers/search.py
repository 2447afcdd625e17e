"""
SearchHandler — search_logs: regex search with context

The pattern is compiled in check_request(), before the snapshot is
resolved, so an invalid pattern is reported without any download or
cache access.
"""

from ..core.query import compile_search_pattern
from ..output import resolve_format, format_search_result
from .base import BaseHandler, add_job_arguments, add_output_arguments, job_fields, output_fields
from .requests import SearchRequest, DEFAULT_PAGE_LIMIT


class SearchHandler(BaseHandler):

    operation = "search_logs"

    def check_request(self, request: SearchRequest) -> None:
        compile_search_pattern(request.pattern, request.case_sensitive)

    def execute(self, request: SearchRequest):
        fmt = resolve_format(request.format, raw=request.raw)
        with self.engine(request) as engine:
            results = [
                format_search_result(result, fmt, request.preserve_ansi)
                for result in engine.search(request.to_options())
            ]
        return {
            "results": results,
            "match_count": len(results),
        }


# =============================================================================
# Command Registration
# =============================================================================

COMMAND_NAME = 'search'


def register_parser(subparsers):
    p = subparsers.add_parser('search', help='Search a job log with a regular expression')
    add_job_arguments(p)
    p.add_argument('pattern', help='Regular expression (case-insensitive by default)')
    p.add_argument('-C', '--context', type=int, default=None,
                   help='Entries of context before and after each match')
    p.add_argument('-B', '--before-context', type=int, default=0,
                   help='Entries of context before each match')
    p.add_argument('-A', '--after-context', type=int, default=0,
                   help='Entries of context after each match')
    p.add_argument('--case-sensitive', action='store_true',
                   help='Match case exactly')
    p.add_argument('--invert-match', action='store_true',
                   help='Return entries that do NOT match')
    p.add_argument('--reverse', action='store_true',
                   help='Scan backwards from the end (or from --seek-start)')
    p.add_argument('--seek-start', type=int, default=None,
                   help='Row number to start scanning from')
    p.add_argument('--limit', type=int, default=DEFAULT_PAGE_LIMIT,
                   help=f'Maximum matches, 0 for all (default: {DEFAULT_PAGE_LIMIT})')
    add_output_arguments(p)


def handle(cli, args):
    request = SearchRequest(
        pattern=args.pattern,
        context=args.context,
        before_context=args.before_context,
        after_context=args.after_context,
        case_sensitive=args.case_sensitive,
        invert_match=args.invert_match,
        reverse=args.reverse,
        seek_start=args.seek_start,
        limit=args.limit,
        **job_fields(args),
        **output_fields(cli, args),
    )
    return SearchHandler(cli).run(request)
