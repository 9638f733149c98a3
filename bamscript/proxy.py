import enum

from bamscript.bridge import cigar_to_script, to_script, typed_value
from bamscript.errors import ScriptError
from bamscript.globals import CIGAR_OPS
from bamscript.values import NativeFunction, ObjectTemplate

HEADER_FIELD = 0
RECORD_FIELD = 1


class CigarKind(enum.IntEnum):
    """ CIGAR operation kinds, valued by their BAM op code. """
    Match = 0
    Insertion = 1
    Deletion = 2
    ReferenceSkip = 3
    SoftClip = 4
    HardClip = 5
    Padding = 6
    Equal = 7
    Diff = 8


class CigarOp:
    __slots__ = ["kind", "length"]

    def __init__(self, kind, length):
        self.kind = CigarKind(kind)
        self.length = length

    @property
    def label(self):
        return CIGAR_OPS[self.kind][0]

    @property
    def consumes_reference(self):
        return CIGAR_OPS[self.kind][1]

    @property
    def consumes_query(self):
        return CIGAR_OPS[self.kind][2]

    def __eq__(self, other):
        return isinstance(other, CigarOp) and (self.kind, self.length) == (other.kind, other.length)

    def __str__(self):
        return "{}{}".format(self.length, "MIDNSHP=X"[self.kind])

    def __repr__(self):
        return "CigarOp({}, {})".format(self.kind.name, self.length)


def cigar_ops(record):
    """ Yields the CigarOp elements of a record's CIGAR in order. """
    for code, length in record.cigartuples or ():
        yield CigarOp(code, length)


def end_position(record):
    """ Rightmost mapped position: leftmost position plus every reference-consuming CIGAR length. """
    return record.reference_start + sum(op.length for op in cigar_ops(record) if op.consumes_reference)


def decode_name(name):
    """ Names arrive as text or raw bytes; undecodable or missing names become empty text. """
    if name is None:
        return ""
    if isinstance(name, (bytes, bytearray)):
        try:
            return bytes(name).decode("utf-8")
        except UnicodeDecodeError:
            return ""
    return name


def reference_name(header, tid):
    if tid is None or tid < 0:
        return ""
    try:
        return decode_name(header.get_reference_name(tid))
    except (ValueError, IndexError, KeyError):
        return ""


def record_from(proxy):
    record = proxy.get_internal_field(RECORD_FIELD)
    if record is None:
        raise ScriptError("TypeError", "alignment is only readable while a filter call is running")
    return record


def header_from(proxy):
    header = proxy.get_internal_field(HEADER_FIELD)
    if header is None:
        raise ScriptError("TypeError", "alignment is only readable while a filter call is running")
    return header


# Accessors: each reads the record bound at call time

def aln_mapq(proxy):
    return record_from(proxy).mapping_quality


def aln_qname(proxy):
    return decode_name(record_from(proxy).query_name)


def aln_flag(proxy):
    return record_from(proxy).flag


def aln_pos(proxy):
    # 0-based, as stored
    return record_from(proxy).reference_start


def aln_end(proxy):
    return end_position(record_from(proxy))


def aln_chrom(proxy):
    return reference_name(header_from(proxy), record_from(proxy).reference_id)


def aln_cigar(proxy):
    return cigar_to_script(cigar_ops(record_from(proxy)))


def aln_aux(proxy, tag):
    """ ``aln.aux(tag)``: the converted tag value, or null for a malformed or absent tag. """
    if not isinstance(tag, str) or len(tag) != 2:
        return None
    record = record_from(proxy)
    try:
        value, code = record.get_tag(tag, with_value_type=True)
    except KeyError:
        return None
    return to_script(typed_value(value, code))


def make_aln_template():
    """ Template for the alignment proxy: internal field 0 holds the header, field 1 the record. """
    template = ObjectTemplate(internal_field_count=2)
    template.set_accessor("mapq", aln_mapq)
    template.set_accessor("qname", aln_qname)
    template.set_accessor("flag", aln_flag)
    template.set_accessor("pos", aln_pos)
    template.set_accessor("start", aln_pos)
    template.set_accessor("end", aln_end)
    template.set_accessor("chrom", aln_chrom)
    template.set_accessor("cigar", aln_cigar)
    template.set("aux", NativeFunction("aux", aln_aux, 1))
    return template
