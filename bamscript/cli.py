import sys

import click
import pysam
from loguru import logger

from bamscript.configuration import DEFAULTS
from bamscript.engine import Engine
from bamscript.errors import EngineError
from bamscript.stream import FilterStats, filter_alignments


@click.command()
@click.argument("input_path", metavar="INPUT", default="-")
@click.option("-o", "--output", "output_path", required=True, help='Output BAM ("-" for stdout).')
@click.option("-e", "--expr", "expression", required=True,
              help="Filter expression or body, e.g. 'aln.mapq > 10 && aln.qname.startsWith(\"q23\")' "
                   "or 'return aln.mapq > 10 && hasFlag(aln.flag, 0x2);'.")
@click.option("-t", "--threads", default=DEFAULTS["threads"], show_default=True, type=int,
              help="Number of threads for BAM I/O.")
@click.option("--step-limit", default=DEFAULTS["step_limit"], type=int,
              help="Abort a record's evaluation after this many script steps.")
@click.option("--log-level", default=DEFAULTS["log_level"], show_default=True,
              type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def main(input_path, output_path, expression, threads, step_limit, log_level):
    """ Write the alignments of INPUT ("-" for stdin) that pass a filter expression. """
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())
    logger.enable("bamscript")

    try:
        engine = Engine(expression, step_limit=step_limit)
    except EngineError as exc:
        raise click.UsageError(str(exc))

    stats = FilterStats()
    with pysam.AlignmentFile(input_path, "rb", threads=threads) as reader:
        with pysam.AlignmentFile(output_path, "wb", template=reader, threads=threads) as writer:
            try:
                for record in filter_alignments(reader.fetch(until_eof=True), reader.header, engine, stats):
                    writer.write(record)
            except EngineError as exc:
                logger.error("Filtering stopped after {} records: {}", stats.read, exc)
                sys.exit(1)


if __name__ == "__main__":
    main()
