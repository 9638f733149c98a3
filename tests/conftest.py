import os
import sys

import pysam
import pytest

myPath = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, myPath + '/../')

from bamscript.runtime import Context

HEADER = {
    "HD": {"VN": "1.6", "SO": "unsorted"},
    "SQ": [{"SN": "chr1", "LN": 10000}, {"SN": "chr2", "LN": 5000}],
}

QUERY_CONSUMING = (0, 1, 4, 7, 8)


class FakeRecord:
    """ Stands in for pysam.AlignedSegment where raw field values are needed (e.g. undecodable names). """

    def __init__(self, query_name="r1", mapping_quality=0, flag=0, reference_id=0, reference_start=0,
                 cigartuples=None, tags=None):
        self.query_name = query_name
        self.mapping_quality = mapping_quality
        self.flag = flag
        self.reference_id = reference_id
        self.reference_start = reference_start
        self.cigartuples = cigartuples
        self.tags = tags or {}

    def get_tag(self, tag, with_value_type=False):
        value, code = self.tags[tag]
        return (value, code) if with_value_type else value


class FakeHeader:

    def __init__(self, names):
        self.names = names

    def get_reference_name(self, tid):
        return self.names[tid]


@pytest.fixture
def header():
    return pysam.AlignmentHeader.from_dict(HEADER)


def make_segment(header, qname="q23.1", mapq=15, flag=0x2, tid=0, pos=100, cigar="10M", tags=()):
    segment = pysam.AlignedSegment(header)
    segment.query_name = qname
    segment.flag = flag
    segment.reference_id = tid
    segment.reference_start = pos
    segment.mapping_quality = mapq
    segment.cigarstring = cigar
    length = sum(n for op, n in segment.cigartuples if op in QUERY_CONSUMING)
    segment.query_sequence = "A" * length
    segment.query_qualities = pysam.qualitystring_to_array("I" * length)
    for tag, value, code in tags:
        segment.set_tag(tag, value, value_type=code)
    return segment


@pytest.fixture
def segment(header):
    def factory(**kwargs):
        return make_segment(header, **kwargs)
    return factory


@pytest.fixture
def run_script():
    """ Runs a function body in a fresh context and returns what it returned. """
    def run(body):
        context = Context()
        context.run(context.compile("function main() {\n" + body + "\n}"))
        return context.call(context.get_global("main"), [])
    return run


@pytest.fixture
def evaluate_script(run_script):
    def evaluate(expression):
        return run_script("return (" + expression + "\n);")
    return evaluate
