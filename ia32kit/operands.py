"""Decoding of operands that need no ModR/M byte, and operand sizing."""

from __future__ import annotations

import enum

from .immediates import read_signed, read_unsigned
from .insn import (
    SEGMENT_MASK,
    Access,
    DataType,
    Instruction,
    Operand,
    OperandFlags,
    OperandType,
)
from .registers import (
    REG_BYTE_OFFSET,
    REG_DWORD_OFFSET,
    REG_FLAGS_INDEX,
    REG_FPU_OFFSET,
    REG_SEG_OFFSET,
    REG_TEST_OFFSET,
    REG_WORD_OFFSET,
    Register,
    register_from_id,
)

PREFIX_REG_MASK = 0xF00


class AddressingMethod(enum.IntEnum):
    """How an operand is located, as in the Intel opcode map."""

    NONE = 0
    A = 1    # direct segment:offset address
    I = 2    # immediate value  # noqa: E741
    J = 3    # offset relative to the next instruction
    O = 4    # word/dword memory offset  # noqa: E741
    F = 5    # EFLAGS register
    X = 6    # memory at DS:(E)SI
    Y = 7    # memory at ES:(E)DI
    RR = 8   # general register hard-coded in the opcode
    RS = 9   # segment register hard-coded in the opcode
    RF = 10  # FPU register hard-coded in the opcode
    RT = 11  # test register hard-coded in the opcode
    II = 12  # immediate hard-coded in the opcode


class OperandEncoding(enum.IntEnum):
    """Operand type codes of the Intel opcode map."""

    DEFAULT = 0
    C = 1
    A = 2
    V = 3
    P = 4
    B = 5
    W = 6
    D = 7
    S = 8
    Q = 9
    DQ = 10
    PS = 11
    PD = 12
    SS = 13
    SD = 14
    PI = 15
    SI = 16
    FS = 17
    FD = 18
    FE = 19
    FB = 20
    FV = 21
    FT = 22
    FX = 23
    FP = 24
    M = 25
    NONE = 26


class SegmentPrefix(enum.IntEnum):
    """Segment override prefixes, within PREFIX_REG_MASK."""

    NONE = 0
    CS = 0x100
    SS = 0x200
    DS = 0x300
    ES = 0x400
    FS = 0x500
    GS = 0x600


_E = OperandEncoding

# Encodings whose size and datatype do not depend on the instruction.
_FIXED: dict[OperandEncoding, tuple[int, DataType]] = {
    _E.B: (1, DataType.BYTE),
    _E.W: (2, DataType.WORD),
    _E.D: (4, DataType.DWORD),
    _E.Q: (8, DataType.QWORD),
    _E.DQ: (16, DataType.DQWORD),
    _E.PS: (16, DataType.SSIMD),
    _E.PD: (16, DataType.DSIMD),
    _E.SS: (16, DataType.SSSIMD),
    _E.SD: (16, DataType.SDSIMD),
    _E.PI: (8, DataType.QWORD),
    _E.SI: (4, DataType.DWORD),
    _E.FS: (4, DataType.SREAL),
    _E.FD: (8, DataType.DREAL),
    _E.FE: (10, DataType.EXTREAL),
    _E.FB: (10, DataType.BCD),
    _E.FX: (512, DataType.FPREGSET),
    _E.FP: (10, DataType.FPREG),
    _E.NONE: (0, DataType.NONE),
}

_SEGMENT_FLAGS: dict[int, OperandFlags] = {
    SegmentPrefix.CS: OperandFlags.CS_SEG,
    SegmentPrefix.SS: OperandFlags.SS_SEG,
    SegmentPrefix.DS: OperandFlags.DS_SEG,
    SegmentPrefix.ES: OperandFlags.ES_SEG,
    SegmentPrefix.FS: OperandFlags.FS_SEG,
    SegmentPrefix.GS: OperandFlags.GS_SEG,
}


def _sized(encoding: OperandEncoding, insn: Instruction) -> tuple[int, DataType]:
    fixed = _FIXED.get(encoding)
    if fixed is not None:
        return fixed
    if encoding == _E.C:
        size = 2 if insn.op_size == 4 else 1
        return size, DataType.WORD if size == 4 else DataType.BYTE
    if encoding == _E.A:
        size = 8 if insn.op_size == 4 else 4
        return size, DataType.BOUNDS32 if size == 4 else DataType.BOUNDS16
    if encoding == _E.V:
        size = 4 if insn.op_size == 4 else 2
        return size, DataType.DWORD if size == 4 else DataType.WORD
    if encoding == _E.P:
        size = 6 if insn.addr_size == 4 else 4
        return size, DataType.DESCR32 if size == 4 else DataType.DESCR16
    if encoding == _E.S:
        return 6, DataType.PDESCR32 if insn.addr_size == 4 else DataType.PDESCR16
    if encoding == _E.FV:
        size = 28 if insn.addr_size == 4 else 14
        return size, DataType.FPUENV32 if size == 28 else DataType.FPUENV16
    if encoding == _E.FT:
        size = 108 if insn.addr_size == 4 else 94
        return size, DataType.FPUSTATE32 if size == 108 else DataType.FPUSTATE16
    if encoding == _E.M:
        size = insn.addr_size
        return size, DataType.DWORD if size == 4 else DataType.WORD
    size = insn.op_size
    return size, DataType.DWORD if size == 4 else DataType.WORD


def _coerce(enum_type, value, fallback):
    try:
        return enum_type(value)
    except ValueError:
        return fallback


def operand_size(encoding: OperandEncoding, insn: Instruction, op: Operand) -> int:
    """Set ``op.datatype`` from the encoding and return the encoded size."""
    encoding = _coerce(OperandEncoding, encoding, OperandEncoding.DEFAULT)
    size, datatype = _sized(encoding, insn)
    op.datatype = datatype
    return size


def apply_segment(op: Operand, prefixes: int) -> None:
    """Mark a memory operand with the segment override among ``prefixes``."""
    if not prefixes:
        return
    segment = _SEGMENT_FLAGS.get(prefixes & PREFIX_REG_MASK)
    if segment is not None:
        op.flags |= segment


def _register(reg_id: int) -> Register:
    try:
        return register_from_id(reg_id)
    except ValueError:
        return Register()


def _imm(buf: bytes, size: int, signed: bool) -> int:
    if size > len(buf):
        return 0
    return read_signed(buf, size) if signed else read_unsigned(buf, size)


def _decode_value(buf: bytes, op: Operand, insn: Instruction,
                  method: AddressingMethod, op_size: int, value: int,
                  gen_regs: int) -> int:
    if method == AddressingMethod.A:
        op.type = OperandType.ABSOLUTE
        op.segment = _imm(buf, 2, False)
        if insn.addr_size == 4:
            op.value = _imm(buf, 4, False)
            return 6
        op.value = _imm(buf, 2, False)
        return 4
    if method == AddressingMethod.I:
        op.type = OperandType.IMMEDIATE
        op.value = _imm(buf, op_size, bool(op.flags & OperandFlags.SIGNED))
        return op_size
    if method == AddressingMethod.J:
        op.flags |= OperandFlags.SIGNED
        op.type = OperandType.RELATIVE_NEAR if op_size == 1 else OperandType.RELATIVE_FAR
        op.value = _imm(buf, op_size, True)
        return op_size
    if method == AddressingMethod.O:
        op.type = OperandType.OFFSET
        op.flags |= OperandFlags.POINTER
        op.value = _imm(buf, insn.addr_size, False)
        return insn.addr_size
    if method == AddressingMethod.F:
        op.type = OperandType.REGISTER
        op.flags |= OperandFlags.HARDCODE
        op.reg = _register(REG_FLAGS_INDEX)
        return 0
    if method in (AddressingMethod.X, AddressingMethod.Y):
        op.type = OperandType.EXPRESSION
        op.flags |= OperandFlags.HARDCODE | OperandFlags.POINTER | OperandFlags.STRING
        if method == AddressingMethod.X:
            op.flags |= OperandFlags.DS_SEG
            op.expression.base = _register(REG_DWORD_OFFSET + 6)
        else:
            op.flags |= OperandFlags.ES_SEG
            op.expression.base = _register(REG_DWORD_OFFSET + 7)
        return 0
    bases = {
        AddressingMethod.RR: gen_regs,
        AddressingMethod.RS: REG_SEG_OFFSET,
        AddressingMethod.RF: REG_FPU_OFFSET,
        AddressingMethod.RT: REG_TEST_OFFSET,
    }
    if method in bases:
        op.type = OperandType.REGISTER
        op.flags |= OperandFlags.HARDCODE
        op.reg = _register(value + bases[method])
        return 0
    if method == AddressingMethod.II:
        op.type = OperandType.IMMEDIATE
        op.value = value
        op.flags |= OperandFlags.HARDCODE
        return 0
    op.type = OperandType.UNUSED
    return 0


def decode_operand(buf: bytes, insn: Instruction, method: AddressingMethod,
                   encoding: OperandEncoding, access: Access = Access.NONE,
                   flags: OperandFlags = OperandFlags.NONE, prefixes: int = 0,
                   value: int = 0) -> int:
    """Decode one operand from ``buf`` and append it to ``insn``.

    ``value`` is the register number or immediate hard-coded in the
    opcode. Returns the number of instruction bytes the operand takes;
    nothing is appended when the operand is absent.
    """
    method = _coerce(AddressingMethod, method, AddressingMethod.NONE)
    encoding = _coerce(OperandEncoding, encoding, OperandEncoding.DEFAULT)
    if (method == AddressingMethod.NONE and encoding == OperandEncoding.DEFAULT
            and not access and not flags):
        return 0

    op = insn.add_operand()
    op.access = Access(access)
    op.flags = OperandFlags(flags)

    op_size = operand_size(encoding, insn, op)
    if op_size == 1:
        gen_regs = REG_BYTE_OFFSET
    elif op_size == 2:
        gen_regs = REG_WORD_OFFSET
    else:
        gen_regs = REG_DWORD_OFFSET

    size = _decode_value(bytes(buf), op, insn, method, op_size, value, gen_regs)

    if op.type in (OperandType.EXPRESSION, OperandType.OFFSET):
        apply_segment(op, prefixes)
    return size


__all__ = [
    "PREFIX_REG_MASK",
    "SEGMENT_MASK",
    "AddressingMethod",
    "OperandEncoding",
    "SegmentPrefix",
    "operand_size",
    "apply_segment",
    "decode_operand",
]