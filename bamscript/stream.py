from loguru import logger

from bamscript.configuration import DEFAULTS


class FilterStats:
    __slots__ = ["read", "written"]

    def __init__(self):
        self.read = 0
        self.written = 0

    @property
    def percent_passed(self):
        return self.written / max(self.read, 1) * 100

    def __str__(self):
        return "{} reads, {} passed the filter ({:.2f}%)".format(self.read, self.written, self.percent_passed)


def progress_label(n_read, milestones=DEFAULTS["progress_milestones"], every=DEFAULTS["progress_every"]):
    """ Label for a progress message after *n_read* records, or None if this count is not reported. """
    if n_read in milestones:
        return "{:,}".format(n_read) if n_read < 1_000_000 else "{}M".format(n_read // 1_000_000)
    if n_read % every == 0:
        return "{}M".format(n_read // 1_000_000) if n_read >= 1_000_000 else "{:,}".format(n_read)
    return None


def filter_alignments(records, header, engine, stats=None, progress_every=DEFAULTS["progress_every"]):
    """
    Generate the records of *records* that pass *engine*.

    *header* is the header the records were read with. Counts go into *stats* if given. Evaluation
    errors propagate and end the stream.
    """
    if stats is None:
        stats = FilterStats()
    for record in records:
        stats.read += 1
        label = progress_label(stats.read, every=progress_every)
        if label is not None:
            logger.info("Processed {} records, {:.2f}% passed the filter", label, stats.percent_passed)
        if engine.evaluate(record, header):
            stats.written += 1
            yield record
    logger.info("Finished processing: {}", stats)
