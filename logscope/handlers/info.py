"""
InfoHandler — get_logs_info: snapshot metadata without reading entries
"""

from .base import BaseHandler, add_job_arguments, job_fields
from .requests import InfoRequest


class InfoHandler(BaseHandler):
    """Row count, size and group/command statistics for a job log."""

    operation = "get_logs_info"

    def execute(self, request: InfoRequest):
        with self.engine(request) as engine:
            info = engine.info()
        return {"file_info": info.to_dict()}


# =============================================================================
# Command Registration
# =============================================================================

COMMAND_NAME = 'info'


def register_parser(subparsers):
    p = subparsers.add_parser('info', help='Show log metadata (rows, size, groups)')
    add_job_arguments(p)


def handle(cli, args):
    request = InfoRequest(**job_fields(args))
    return InfoHandler(cli).run(request)
