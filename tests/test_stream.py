import pysam
import pytest
from click.testing import CliRunner
from loguru import logger

from bamscript import Engine, FilterStats, filter_alignments
from bamscript.cli import main
from bamscript.errors import PredicateThrewError
from bamscript.stream import progress_label

from conftest import HEADER, FakeHeader, FakeRecord, make_segment

progress_tests = {
    1: None,
    10_000: "10,000",
    100_000: "100,000",
    1_000_000: "1M",
    2_000_000: None,
    5_000_000: "5M",
    15_000_000: "15M",
}


@pytest.mark.parametrize("n_read", progress_tests.keys())
def test_progress_label(n_read):
    assert progress_label(n_read) == progress_tests[n_read]


@pytest.fixture
def messages():
    captured = []
    handler = logger.add(captured.append, format="{message}")
    logger.enable("bamscript")
    yield captured
    logger.disable("bamscript")
    logger.remove(handler)


def test_library_is_quiet_by_default():
    captured = []
    handler = logger.add(captured.append, level="TRACE", format="{message}")
    try:
        list(filter_alignments([FakeRecord()], FakeHeader(["chr1"]), Engine("true")))
    finally:
        logger.remove(handler)
    assert captured == []


def test_filter_alignments(messages):
    records = [FakeRecord(query_name="r{}".format(q), mapping_quality=q) for q in (5, 20, 30, 8)]
    stats = FilterStats()
    passed = list(filter_alignments(records, FakeHeader(["chr1"]), Engine("aln.mapq > 10"), stats, progress_every=2))
    assert [r.query_name for r in passed] == ["r20", "r30"]
    assert (stats.read, stats.written) == (4, 2)
    assert stats.percent_passed == 50
    assert any("Processed 2 records, 0.00% passed" in m for m in messages)
    assert any("Processed 4 records, 50.00% passed" in m for m in messages)
    assert any("Finished processing: 4 reads, 2 passed the filter (50.00%)" in m for m in messages)


def test_filter_alignments_stops_on_error():
    records = [FakeRecord(mapping_quality=20), FakeRecord(mapping_quality=1)]
    engine = Engine("if (aln.mapq < 10) throw 'low'; return true")
    stream = filter_alignments(records, FakeHeader(["chr1"]), engine)
    assert next(stream) is records[0]
    with pytest.raises(PredicateThrewError):
        next(stream)


@pytest.fixture
def bam_path(tmp_path):
    header = pysam.AlignmentHeader.from_dict(HEADER)
    records = [
        make_segment(header, qname="q23.1", mapq=15, flag=0x2),
        make_segment(header, qname="q23.2", mapq=3, flag=0x2),
        make_segment(header, qname="q41.1", mapq=60, flag=0x4 | 0x2, tid=1),
        make_segment(header, qname="q23.3", mapq=40, flag=0x10, tags=[("NM", 1, "C")]),
    ]
    path = tmp_path / "input.bam"
    with pysam.AlignmentFile(str(path), "wb", header=header) as out:
        for record in records:
            out.write(record)
    return path


def read_names(path):
    with pysam.AlignmentFile(str(path), "rb") as bam:
        return [record.query_name for record in bam.fetch(until_eof=True)]


@pytest.fixture
def runner():
    yield CliRunner()
    logger.remove()
    logger.disable("bamscript")


def test_cli_filters(bam_path, tmp_path, runner):
    output = tmp_path / "output.bam"
    result = runner.invoke(main, [str(bam_path), "-o", str(output), "-t", "1",
                                  "-e", "aln.mapq > 10 and aln.qname.startsWith('q23')"])
    assert result.exit_code == 0, result.output
    assert read_names(output) == ["q23.1", "q23.3"]


def test_cli_keeps_header(bam_path, tmp_path, runner):
    output = tmp_path / "output.bam"
    result = runner.invoke(main, [str(bam_path), "-o", str(output), "-e", "aln.chrom == 'chr2'"])
    assert result.exit_code == 0, result.output
    assert read_names(output) == ["q41.1"]
    with pysam.AlignmentFile(str(output), "rb") as bam:
        assert bam.references == ("chr1", "chr2")


def test_cli_rejects_bad_expression(bam_path, tmp_path, runner):
    result = runner.invoke(main, [str(bam_path), "-o", str(tmp_path / "out.bam"), "-e", "aln.mapq >"])
    assert result.exit_code == 2
    assert "failed to compile" in result.output


def test_cli_exits_on_evaluation_error(bam_path, tmp_path, runner):
    result = runner.invoke(main, [str(bam_path), "-o", str(tmp_path / "out.bam"), "-e", "aln.nothing.here"])
    assert result.exit_code == 1
