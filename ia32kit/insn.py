"""Decoded instructions and their operands."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

from .registers import Register

SEGMENT_MASK = 0xF00


class OperandType(enum.IntEnum):
    """What an operand refers to."""

    UNUSED = 0
    REGISTER = 1
    IMMEDIATE = 2
    RELATIVE_NEAR = 3
    RELATIVE_FAR = 4
    ABSOLUTE = 5
    EXPRESSION = 6
    OFFSET = 7
    UNKNOWN = 8

    @property
    def is_address(self) -> bool:
        """True for operands that hold an absolute address."""
        return self in (OperandType.ABSOLUTE, OperandType.OFFSET)


class DataType(enum.IntEnum):
    """Size and kind of the data an operand holds."""

    UNSET = 0
    BYTE = 1
    WORD = 2
    DWORD = 3
    QWORD = 4
    DQWORD = 5
    SREAL = 6
    DREAL = 7
    EXTREAL = 8
    BCD = 9
    SSIMD = 10
    DSIMD = 11
    SSSIMD = 12
    SDSIMD = 13
    DESCR32 = 14
    DESCR16 = 15
    PDESCR32 = 16
    PDESCR16 = 17
    BOUNDS16 = 18
    BOUNDS32 = 19
    FPUENV16 = 20
    FPUENV32 = 21
    FPUSTATE16 = 22
    FPUSTATE32 = 23
    FPREGSET = 24
    FPREG = 25
    NONE = 0xFF


class Access(enum.IntFlag):
    """How an instruction uses an operand."""

    NONE = 0
    READ = 1
    WRITE = 2
    EXECUTE = 4


class OperandFlags(enum.IntFlag):
    """Operand properties; the segment values share the 0xF00 field."""

    NONE = 0
    SIGNED = 0x001
    STRING = 0x002
    CONSTANT = 0x004
    POINTER = 0x008
    SYSREF = 0x010
    IMPLIED = 0x020
    HARDCODE = 0x040
    ES_SEG = 0x100
    CS_SEG = 0x200
    SS_SEG = 0x300
    DS_SEG = 0x400
    FS_SEG = 0x500
    GS_SEG = 0x600


class OperandFilter(enum.IntFlag):
    """Selects operands by access type and by being implicit or explicit."""

    ANY = 0
    DEST = 1
    SRC = 2
    RO = 3
    WO = 4
    XO = 5
    RW = 6
    IMPLICIT = 0x10
    EXPLICIT = 0x20


class InsnType(enum.IntEnum):
    """Operation performed by an instruction."""

    INVALID = 0
    JMP = 0x1001
    JCC = 0x1002
    CALL = 0x1003
    CALLCC = 0x1004
    RETURN = 0x1005
    LOOP = 0x1006
    ADD = 0x2001
    SUB = 0x2002
    MUL = 0x2003
    DIV = 0x2004
    INC = 0x2005
    DEC = 0x2006
    SHL = 0x2007
    SHR = 0x2008
    ROL = 0x2009
    ROR = 0x200A
    AND = 0x3001
    OR = 0x3002
    XOR = 0x3003
    NOT = 0x3004
    NEG = 0x3005
    PUSH = 0x4001
    POP = 0x4002
    PUSHREGS = 0x4003
    POPREGS = 0x4004
    PUSHFLAGS = 0x4005
    POPFLAGS = 0x4006
    ENTER = 0x4007
    LEAVE = 0x4008
    TEST = 0x5001
    CMP = 0x5002
    MOV = 0x6001
    MOVCC = 0x6002
    XCHG = 0x6003
    XCHGCC = 0x6004
    STRCMP = 0x7001
    STRLOAD = 0x7002
    STRMOV = 0x7003
    STRSTORE = 0x7004
    TRANSLATE = 0x7005
    BITTEST = 0x8001
    BITSET = 0x8002
    BITCLEAR = 0x8003
    CLEAR_CARRY = 0x9001
    CLEAR_ZERO = 0x9002
    CLEAR_OFLOW = 0x9003
    CLEAR_DIR = 0x9004
    CLEAR_SIGN = 0x9005
    CLEAR_PARITY = 0x9006
    SET_CARRY = 0x9007
    SET_ZERO = 0x9008
    SET_OFLOW = 0x9009
    SET_DIR = 0x900A
    SET_SIGN = 0x900B
    SET_PARITY = 0x900C
    TOG_CARRY = 0x9010
    TOG_ZERO = 0x9020
    TOG_OFLOW = 0x9030
    TOG_DIR = 0x9040
    TOG_SIGN = 0x9050
    TOG_PARITY = 0x9060
    FMOV = 0xA001
    FMOVCC = 0xA002
    FNEG = 0xA003
    FABS = 0xA004
    FADD = 0xA005
    FSUB = 0xA006
    FMUL = 0xA007
    FDIV = 0xA008
    FSQRT = 0xA009
    FCMP = 0xA00A
    FCOS = 0xA00C
    FLDPI = 0xA00D
    FLDZ = 0xA00E
    FTAN = 0xA00F
    FSINE = 0xA010
    FSYS = 0xA020
    INT = 0xD001
    INTCC = 0xD002
    IRET = 0xD003
    BOUND = 0xD004
    DEBUG = 0xD005
    TRACE = 0xD006
    INVALID_OP = 0xD007
    OFLOW = 0xD008
    HALT = 0xE001
    IN = 0xE002
    OUT = 0xE003
    CPUID = 0xE004
    NOP = 0xF001
    BCDCONV = 0xF002
    SZCONV = 0xF003


class InsnGroup(enum.IntEnum):
    """Broad category of an instruction."""

    NONE = 0
    CONTROLFLOW = 1
    ARITHMETIC = 2
    LOGIC = 3
    STACK = 4
    COMPARISON = 5
    MOVE = 6
    STRING = 7
    BIT_MANIP = 8
    FLAG_MANIP = 9
    FPU = 10
    INTERRUPT = 13
    SYSTEM = 14
    OTHER = 15


class InsnPrefix(enum.IntFlag):
    """Repeat and lock prefixes present on an instruction."""

    NONE = 0
    REPZ = 1
    REPNZ = 2
    LOCK = 4
    DELAY = 8


class InsnNote(enum.IntFlag):
    """Special properties of an instruction."""

    NONE = 0
    RING0 = 1
    SMM = 2
    SERIAL = 4
    NONSWAP = 8
    NOSUFFIX = 16


class FlagStatus(enum.IntFlag):
    """EFLAGS conditions set or tested by an instruction."""

    NONE = 0
    CARRY_SET = 0x0001
    ZERO_SET = 0x0002
    OFLOW_SET = 0x0004
    DIR_SET = 0x0008
    SIGN_SET = 0x0010
    PARITY_SET = 0x0020
    CARRY_OR_ZERO_SET = 0x0040
    ZERO_SET_OR_SIGN_NE_OFLOW = 0x0080
    CARRY_CLEAR = 0x0100
    ZERO_CLEAR = 0x0200
    OFLOW_CLEAR = 0x0400
    DIR_CLEAR = 0x0800
    SIGN_CLEAR = 0x1000
    PARITY_CLEAR = 0x2000
    SIGN_EQ_OFLOW = 0x4000
    SIGN_NE_OFLOW = 0x8000


_DATATYPE_SIZES: dict[DataType, int] = {
    DataType.BYTE: 1,
    DataType.WORD: 2,
    DataType.DWORD: 4,
    DataType.QWORD: 8,
    DataType.DQWORD: 16,
    DataType.SREAL: 4,
    DataType.DREAL: 8,
    DataType.EXTREAL: 10,
    DataType.BCD: 10,
    DataType.SSIMD: 16,
    DataType.DSIMD: 16,
    DataType.SSSIMD: 4,
    DataType.SDSIMD: 8,
    DataType.DESCR32: 6,
    DataType.DESCR16: 4,
    DataType.PDESCR32: 6,
    DataType.PDESCR16: 6,
    DataType.BOUNDS16: 4,
    DataType.BOUNDS32: 8,
    DataType.FPUENV16: 14,
    DataType.FPUENV32: 28,
    DataType.FPUSTATE16: 94,
    DataType.FPUSTATE32: 108,
    DataType.FPREGSET: 512,
    DataType.FPREG: 10,
    DataType.NONE: 0,
}


@dataclass
class EffectiveAddress:
    """A memory reference of the form disp(base, index, scale)."""

    scale: int = 0
    index: Register = field(default_factory=Register)
    base: Register = field(default_factory=Register)
    disp: int = 0
    disp_sign: bool = False
    disp_size: int = 0


@dataclass
class Operand:
    """One operand of a decoded instruction.

    ``value`` holds immediates, relative offsets, memory offsets and the
    offset part of absolute addresses; ``segment`` the segment part.
    """

    type: OperandType = OperandType.UNUSED
    datatype: DataType = DataType.UNSET
    access: Access = Access.NONE
    flags: OperandFlags = OperandFlags.NONE
    value: int = 0
    segment: int = 0
    reg: Register = field(default_factory=Register)
    expression: EffectiveAddress = field(default_factory=EffectiveAddress)
    insn: Optional["Instruction"] = field(default=None, repr=False, compare=False)

    def byte_size(self) -> int:
        """Size in bytes of the data this operand refers to."""
        return _DATATYPE_SIZES.get(self.datatype, 4)


def _access_matches(kind: int, access: Access) -> bool:
    readable = bool(access & Access.READ)
    writable = bool(access & Access.WRITE)
    if kind == OperandFilter.DEST:
        return writable
    if kind == OperandFilter.SRC:
        return readable
    if kind == OperandFilter.RO:
        return readable and not writable
    if kind == OperandFilter.WO:
        return writable and not readable
    if kind == OperandFilter.XO:
        return bool(access & Access.EXECUTE)
    if kind == OperandFilter.RW:
        return readable and writable
    return True


@dataclass
class Instruction:
    """A decoded instruction with its operands."""

    addr: int = 0
    offset: int = 0
    group: InsnGroup = InsnGroup.NONE
    type: InsnType = InsnType.INVALID
    note: InsnNote = InsnNote.NONE
    raw: bytes = b""
    size: int = 0
    addr_size: int = 4
    op_size: int = 4
    cpu: int = 0
    isa: int = 0
    flags_set: FlagStatus = FlagStatus.NONE
    flags_tested: FlagStatus = FlagStatus.NONE
    stack_mod: bool = False
    stack_mod_val: int = 0
    prefix: InsnPrefix = InsnPrefix.NONE
    prefix_string: str = ""
    mnemonic: str = ""
    operands: list[Operand] = field(default_factory=list)
    explicit_count: int = 0
    function: Any = None
    block: Any = None
    tag: bool = False

    def is_valid(self) -> bool:
        """True if the instruction decoded to something real."""
        return self.type != InsnType.INVALID and self.size > 0

    def target_address(self) -> int:
        """Address held by the first offset or absolute operand, else 0."""
        for op in self.operands:
            if op.type in (OperandType.OFFSET, OperandType.ABSOLUTE):
                return op.value
        return 0

    def rel_offset(self) -> int:
        """Relative displacement of the first relative operand, else 0."""
        for op in self.operands:
            if op.type in (OperandType.RELATIVE_NEAR, OperandType.RELATIVE_FAR):
                return op.value
        return 0

    def branch_target(self) -> Optional[Operand]:
        """First operand the instruction executes, if any."""
        return next((op for op in self.operands if op.access & Access.EXECUTE), None)

    def immediate(self) -> Optional[Operand]:
        """First immediate operand, if any."""
        return next((op for op in self.operands
                     if op.type == OperandType.IMMEDIATE), None)

    def raw_immediate(self) -> Optional[bytes]:
        """Encoded bytes of the first encoded immediate among the first
        three operands; immediates sit at the end of the instruction."""
        for op in self.operands[:3]:
            if op.type == OperandType.IMMEDIATE and not op.flags & OperandFlags.HARDCODE:
                start = max(self.size - op.byte_size(), 0)
                return bytes(self.raw[start:self.size])
        return None

    def add_operand(self) -> Operand:
        """Append a new operand, counted as explicit, and return it."""
        op = Operand(insn=self)
        self.operands.append(op)
        self.explicit_count += 1
        return op

    def clear_operands(self) -> None:
        """Remove all operands."""
        self.operands.clear()
        self.explicit_count = 0

    def operands_matching(self, selector: OperandFilter = OperandFilter.ANY
                          ) -> Iterator[Operand]:
        """Yield the operands that the selector accepts."""
        implicit = explicit = True
        if selector & OperandFilter.EXPLICIT and not selector & OperandFilter.IMPLICIT:
            implicit = False
        if selector & OperandFilter.IMPLICIT and not selector & OperandFilter.EXPLICIT:
            explicit = False
        kind = int(selector) & 0x0F
        for op in self.operands:
            implied = bool(op.flags & OperandFlags.IMPLIED)
            if implied and not implicit:
                continue
            if not implied and not explicit:
                continue
            if _access_matches(kind, op.access):
                yield op

    def operand_count(self, selector: OperandFilter = OperandFilter.ANY) -> int:
        """Number of operands the selector accepts."""
        if selector == OperandFilter.ANY:
            return len(self.operands)
        if selector == OperandFilter.EXPLICIT:
            return self.explicit_count
        return sum(1 for _ in self.operands_matching(selector))

    def _explicit(self, position: int) -> Optional[Operand]:
        if self.explicit_count <= position:
            return None
        return self.operands[position]

    def first(self) -> Optional[Operand]:
        """First explicit operand (the destination), if present."""
        return self._explicit(0)

    def second(self) -> Optional[Operand]:
        """Second explicit operand (the source), if present."""
        return self._explicit(1)

    def third(self) -> Optional[Operand]:
        """Third explicit operand (usually an immediate), if present."""
        return self._explicit(2)