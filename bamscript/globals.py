#: CIGAR operations in BAM op-code order: (label seen by scripts, consumes reference, consumes query)
CIGAR_OPS = [
    ("Match", True, True),       # M
    ("Ins", False, True),        # I
    ("Del", True, False),        # D
    ("RefSkip", True, False),    # N
    ("SoftClip", False, True),   # S
    ("HardClip", False, False),  # H
    ("Pad", False, False),       # P
    ("Equal", True, True),       # =
    ("Diff", True, True),        # X
]

#: SAM flag bits exposed to filter expressions as global constants.
SAM_FLAGS = {
    "PAIRED": 0x1,
    "PROPER_PAIR": 0x2,
    "UNMAP": 0x4,
    "MUNMAP": 0x8,
    "REVERSE": 0x10,
    "MREVERSE": 0x20,
    "READ1": 0x40,
    "READ2": 0x80,
    "SECONDARY": 0x100,
    "QCFAIL": 0x200,
    "DUP": 0x400,
    "SUPPLEMENTARY": 0x800,
}

#: Word-padded sugar accepted in expressions.
SUGAR = [(" and ", " && "), (" or ", " || ")]

PROXY_NAME = "aln"
PREDICATE_NAME = "filter"
