"""
zkboo command line entry point
"""

import sys
import time
import logging

import click

from zkboo.core.config import settings
from zkboo.cli.commands import prove, verify, demo, circuits, config, version
from zkboo.cli.utils import setup_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option('--debug', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, debug):
    """zkboo - zero-knowledge proofs by MPC-in-the-head"""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    ctx.obj['start_time'] = time.time()

    setup_logging(settings.log_level, debug)
    if debug:
        logger.debug(f"Python {sys.version.split()[0]}, settings: {settings.describe()}")


cli.add_command(version)
cli.add_command(circuits)
cli.add_command(prove)
cli.add_command(verify)
cli.add_command(demo)
cli.add_command(config)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
