import threading

import pytest

from bamscript import Engine, construct
from bamscript.errors import (
    EngineError, PredicateReturnedEmptyError, PredicateThrewError, ScriptError, SourceError, StepLimitError,
    CompileError,
)
from bamscript.values import EMPTY

scenario_expressions = {
    "aln.mapq > 10 && aln.qname.startsWith('q23')": True,
    "hasFlag(aln.flag, 0x4)": False,
    "hasFlag(aln.flag, PROPER_PAIR)": True,
    "aln.aux('XY')": False,
    "aln.aux('XY') === null": True,
    "aln.aux('NM') == 3": True,
    "aln.mapq > 10 and aln.qname.startsWith('q23')": True,
    "aln.chrom == 'chr1' and aln.pos == 100 and aln.start == 100": True,
    "aln.end == 110": True,
    "aln.cigar.length == 1 && aln.cigar[0].op == 'Match'": True,
    "return aln.mapq > 10 && hasFlag(aln.flag, 0x2);": True,
    "aln.cigar.filter(c => c.consumes_ref).reduce((s, c) => s + c.length, 0) == aln.end - aln.start": True,
    "aln.cigar.map((c) => c.length).reduce((a, b) => a + b, 0) == 10": True,
    "return ok(aln); function ok(a) { return a.mapq == 15 }": True,
}


@pytest.fixture
def q23(segment):
    return segment(qname="q23.1", mapq=15, flag=0x2, tags=[("NM", 3, "C")])


@pytest.mark.parametrize("expression", scenario_expressions.keys())
def test_scenarios(expression, q23, header):
    engine = Engine(expression)
    assert engine.evaluate(q23, header) is scenario_expressions[expression]


def test_mapq_threshold(segment, header):
    for q in range(256):
        record = segment(mapq=q)
        assert construct("aln.mapq > {}".format(q - 1)).evaluate(record, header) is True
        assert construct("aln.mapq > {}".format(q)).evaluate(record, header) is False


@pytest.mark.parametrize("mapq, flag", [(30, 0x2), (30, 0x0), (5, 0x2), (5, 0x0)])
def test_sugar_matches_operators(segment, header, mapq, flag):
    record = segment(mapq=mapq, flag=flag)
    for word, operator in (("and", "&&"), ("or", "||")):
        sugared = Engine("aln.mapq > 10 {} hasFlag(aln.flag, 0x2)".format(word))
        plain = Engine("aln.mapq > 10 {} hasFlag(aln.flag, 0x2)".format(operator))
        assert sugared.evaluate(record, header) == plain.evaluate(record, header)


def test_implicit_return(segment, header):
    implicit = Engine("aln.mapq > 10")
    explicit = Engine("return aln.mapq > 10;")
    for q in (0, 10, 11, 60):
        record = segment(mapq=q)
        assert implicit.evaluate(record, header) == explicit.evaluate(record, header) == (q > 10)


def test_rebinding_uses_latest_record(segment, header):
    engine = Engine("aln.chrom == 'chr2' && aln.mapq > 20")
    first = segment(tid=1, mapq=30)
    second = segment(tid=0, mapq=10)
    assert engine.evaluate(first, header)
    assert not engine.evaluate(second, header)
    assert engine.evaluate(first, header)


def test_proxy_is_reused_and_unbound_after_call(q23, header):
    engine = Engine("aln.mapq > 10")
    proxy = engine.aln
    engine.evaluate(q23, header)
    engine.evaluate(q23, header)
    assert engine.aln is proxy
    assert proxy.internal_fields == [None, None]
    with pytest.raises(ScriptError):
        proxy.get("mapq")


def test_bindings_cleared_after_throw(q23, header):
    engine = Engine("throw 'nope'; return true")
    with pytest.raises(PredicateThrewError):
        engine.evaluate(q23, header)
    assert engine.aln.internal_fields == [None, None]


def test_result_uses_truthiness(q23, header):
    assert Engine("aln.qname").evaluate(q23, header) is True
    assert Engine("aln.qname.slice(0, 0)").evaluate(q23, header) is False
    assert Engine("aln.cigar").evaluate(q23, header) is True
    assert Engine("return 0;").evaluate(q23, header) is False
    assert Engine("return;").evaluate(q23, header) is False


def test_predicate_threw(q23, header):
    with pytest.raises(PredicateThrewError) as info:
        Engine("aln.qname.nope()").evaluate(q23, header)
    assert info.value.__cause__.kind == "TypeError"


def test_falling_off_the_end_is_false(q23, header):
    assert Engine("if (aln.mapq > 100) return true;").evaluate(q23, header) is False
    assert Engine("if (aln.mapq > 10) return true;").evaluate(q23, header) is True
    assert Engine("aln.qname.startsWith('return')").evaluate(q23, header) is False


def test_predicate_returned_empty(q23, header, monkeypatch):
    engine = Engine("true")
    monkeypatch.setattr(engine.context, "call", lambda function, args: EMPTY)
    with pytest.raises(PredicateReturnedEmptyError):
        engine.evaluate(q23, header)


def test_host_failure_becomes_predicate_threw(header):
    # a record without the attributes the proxy reads
    with pytest.raises(PredicateThrewError) as info:
        Engine("aln.mapq > 1").evaluate(object(), header)
    assert info.value.__cause__.kind == "TypeError"


def test_odd_property_keys(q23, header):
    assert Engine("aln.qname[[1]] == '2'").evaluate(q23, header) is True
    assert Engine("aln.qname['0'] == 'q'").evaluate(q23, header) is True
    assert Engine("aln.qname[aln.cigar] === undefined").evaluate(q23, header) is True


def test_step_limit(q23, header):
    engine = Engine("while (true) {}\nreturn true", step_limit=1000)
    with pytest.raises(PredicateThrewError) as info:
        engine.evaluate(q23, header)
    assert isinstance(info.value.__cause__, StepLimitError)


def test_step_limit_resets_per_record(segment, header):
    engine = Engine("let n = 0; for (const op of aln.cigar) n += op.length; return n > 0", step_limit=50)
    for _ in range(10):
        assert engine.evaluate(segment(cigar="5S10M"), header)


def test_construction_errors():
    with pytest.raises(SourceError):
        Engine(42)
    with pytest.raises(CompileError):
        Engine("aln.mapq >")


def test_engine_refuses_other_threads(q23, header):
    engine = Engine("aln.mapq > 10")
    errors = []

    def work():
        try:
            engine.evaluate(q23, header)
        except EngineError as exc:
            errors.append(exc)

    worker = threading.Thread(target=work)
    worker.start()
    worker.join()
    assert len(errors) == 1
    assert engine.evaluate(q23, header)


def test_engine_per_worker(segment, header):
    records = [segment(mapq=q) for q in range(0, 60, 3)]
    results = {}

    def work(name):
        engine = Engine("aln.mapq >= 30")
        results[name] = sum(engine.evaluate(r, header) for r in records)

    workers = [threading.Thread(target=work, args=(i,)) for i in range(4)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    assert results == {i: 10 for i in range(4)}
