"""
FetchHandler — get_job_logs: the whole log, inline or as a file

The log is rendered once as sanitized plain text (one line per entry),
then handed to the adaptive delivery controller, which either returns
it inline or writes it to a temporary file when the token estimate
exceeds the configured threshold.
"""

from ..output import render_plain_text
from .base import BaseHandler, add_job_arguments, job_fields
from .requests import FetchRequest


class FetchHandler(BaseHandler):

    operation = "get_job_logs"
    timed = False

    def execute(self, request: FetchRequest):
        with self.engine(request) as engine:
            text = render_plain_text(engine.read())

        result = self.delivery.deliver(text)
        payload = result.to_dict()
        payload["job"] = request.job
        payload["build"] = request.build
        return payload


# =============================================================================
# Command Registration
# =============================================================================

COMMAND_NAME = 'fetch'


def register_parser(subparsers):
    p = subparsers.add_parser(
        'fetch',
        help='Fetch the whole log (written to a temp file above delivery.token_threshold)',
    )
    add_job_arguments(p)


def handle(cli, args):
    request = FetchRequest(**job_fields(args))
    return FetchHandler(cli).run(request)
