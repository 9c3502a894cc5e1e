"""Display names for prefixes, register types, datatypes, flags and more."""

from __future__ import annotations

import enum

from .insn import (
    DataType,
    FlagStatus,
    InsnNote,
    InsnPrefix,
    InsnType,
    Operand,
    OperandFlags,
)
from .registers import RegisterType


class Syntax(enum.IntEnum):
    """Output syntax for formatted instructions and operands."""

    UNKNOWN = 0
    NATIVE = 1
    INTEL = 2
    ATT = 3
    XML = 4
    RAW = 5


# Trailing spaces make these easy to prepend to a mnemonic.
_PREFIX_NAMES: tuple[tuple[InsnPrefix, str], ...] = (
    (InsnPrefix.REPZ, "repz "),
    (InsnPrefix.REPNZ, "repnz "),
    (InsnPrefix.LOCK, "lock "),
    (InsnPrefix.DELAY, "branch delay "),
)

_REGTYPE_NAMES: tuple[tuple[RegisterType, str], ...] = (
    (RegisterType.GEN, "reg_gen"),
    (RegisterType.IN, "reg_in"),
    (RegisterType.OUT, "reg_out"),
    (RegisterType.LOCAL, "reg_local"),
    (RegisterType.FPU, "reg_fpu"),
    (RegisterType.SEG, "reg_seg"),
    (RegisterType.SIMD, "reg_simd"),
    (RegisterType.SYS, "reg_sys"),
    (RegisterType.SP, "reg_sp"),
    (RegisterType.FP, "reg_fp"),
    (RegisterType.PC, "reg_pc"),
    (RegisterType.RETADDR, "reg_retaddr"),
    (RegisterType.COND, "reg_cond"),
    (RegisterType.ZERO, "reg_zero"),
    (RegisterType.RET, "reg_ret"),
    (RegisterType.SRC, "reg_src"),
    (RegisterType.DEST, "reg_dest"),
    (RegisterType.COUNT, "reg_count"),
)

_SIGNED_DATATYPES: dict[DataType, str] = {
    DataType.BYTE: "sbyte",
    DataType.WORD: "sword",
    DataType.QWORD: "sqword",
    DataType.DQWORD: "sdqword",
}

# The FPU environment and state names are crossed over on purpose: this
# is the established output of the format and tools parse it as such.
_UNSIGNED_DATATYPES: dict[DataType, str] = {
    DataType.BYTE: "byte",
    DataType.WORD: "word",
    DataType.QWORD: "qword",
    DataType.DQWORD: "dqword",
    DataType.SREAL: "sreal",
    DataType.DREAL: "dreal",
    DataType.EXTREAL: "extreal",
    DataType.BCD: "bcd",
    DataType.SSIMD: "ssimd",
    DataType.DSIMD: "dsimd",
    DataType.SSSIMD: "sssimd",
    DataType.SDSIMD: "sdsimd",
    DataType.DESCR32: "descr32",
    DataType.DESCR16: "descr16",
    DataType.PDESCR32: "pdescr32",
    DataType.PDESCR16: "pdescr16",
    DataType.BOUNDS16: "bounds16",
    DataType.BOUNDS32: "bounds32",
    DataType.FPUSTATE16: "fpu_env16",
    DataType.FPUSTATE32: "fpu_env32",
    DataType.FPUENV16: "fpu_state16",
    DataType.FPUENV32: "fpu_state32",
    DataType.FPREGSET: "fp_reg_set",
}

_EFLAGS_NAMES: tuple[tuple[FlagStatus, str], ...] = (
    (FlagStatus.CARRY_SET, "carry_set "),
    (FlagStatus.ZERO_SET, "zero_set "),
    (FlagStatus.OFLOW_SET, "oflow_set "),
    (FlagStatus.DIR_SET, "dir_set "),
    (FlagStatus.SIGN_SET, "sign_set "),
    (FlagStatus.PARITY_SET, "parity_set "),
    (FlagStatus.CARRY_OR_ZERO_SET, "carry_or_zero_set "),
    (FlagStatus.ZERO_SET_OR_SIGN_NE_OFLOW, "zero_set_or_sign_ne_oflow "),
    (FlagStatus.CARRY_CLEAR, "carry_clear "),
    (FlagStatus.ZERO_CLEAR, "zero_clear "),
    (FlagStatus.OFLOW_CLEAR, "oflow_clear "),
    (FlagStatus.DIR_CLEAR, "dir_clear "),
    (FlagStatus.SIGN_CLEAR, "sign_clear "),
    (FlagStatus.PARITY_CLEAR, "parity_clear "),
    (FlagStatus.SIGN_EQ_OFLOW, "sign_eq_oflow "),
    (FlagStatus.SIGN_NE_OFLOW, "sign_ne_oflow "),
)

_GROUP_NAMES: tuple[str, ...] = (
    "",
    "controlflow",
    "arithmetic",
    "logic",
    "stack",
    "comparison",
    "move",
    "string",
    "bit_manip",
    "flag_manip",
    "fpu",
    "",
    "",
    "interrupt",
    "system",
    "other",
)

_INTEL_CPUS: tuple[str, ...] = (
    "",
    "8086",
    "80286",
    "80386",
    "80387",
    "80486",
    "Pentium",
    "Pentium Pro",
    "Pentium 2",
    "Pentium 3",
    "Pentium 4",
)

_OTHER_CPUS: dict[int, str] = {16: "K6", 32: "K7", 48: "Athlon"}

_ISA_NAMES: tuple[str, ...] = (
    "",
    "General Purpose",
    "Floating Point",
    "FPU Management",
    "MMX",
    "SSE",
    "SSE2",
    "SSE3",
    "3DNow!",
    "System",
)

_NOTE_NAMES: tuple[tuple[InsnNote, str], ...] = (
    (InsnNote.RING0, "Ring0 "),
    (InsnNote.SMM, "SMM "),
    (InsnNote.SERIAL, "Serialize "),
)

_NOTE_MAX = 31


def prefix_string(prefix: int) -> str:
    """Names of the repeat/lock prefixes set in ``prefix``, each followed by a space."""
    return "".join(name for bit, name in _PREFIX_NAMES if prefix & bit)


def regtype_string(regtype: int) -> str:
    """Space-separated names of the register type bits set in ``regtype``."""
    return " ".join(name for bit, name in _REGTYPE_NAMES if regtype & bit)


def datatype_string(op: Operand) -> str:
    """Name of an operand's datatype, taking its signedness into account."""
    if op.flags & OperandFlags.SIGNED:
        return _SIGNED_DATATYPES.get(op.datatype, "sdword")
    return _UNSIGNED_DATATYPES.get(op.datatype, "dword")


def eflags_string(flags: int) -> str:
    """Names of the flag conditions in ``flags``, each followed by a space."""
    return "".join(name for bit, name in _EFLAGS_NAMES if flags & bit)


def group_string(group: int) -> str:
    """Name of an instruction group; empty for unnamed or unknown groups."""
    group = int(group)
    if 0 <= group < len(_GROUP_NAMES):
        return _GROUP_NAMES[group]
    return ""


def type_string(insn_type: int) -> str:
    """Name of an instruction type; empty for invalid or unknown types."""
    try:
        kind = InsnType(int(insn_type))
    except ValueError:
        return ""
    if kind == InsnType.INVALID:
        return ""
    return kind.name.lower()


def cpu_string(cpu: int) -> str:
    """Name of the processor an instruction first appeared on."""
    cpu = int(cpu)
    if 0 <= cpu < len(_INTEL_CPUS):
        return _INTEL_CPUS[cpu]
    return _OTHER_CPUS.get(cpu, "")


def isa_string(isa: int) -> str:
    """Name of the instruction-set subset an instruction belongs to."""
    isa = int(isa)
    if 0 <= isa < len(_ISA_NAMES):
        return _ISA_NAMES[isa]
    return ""


def note_string(note: int) -> str:
    """Names of the special notes on an instruction, each followed by a space."""
    text = "".join(name for bit, name in _NOTE_NAMES if note & bit)
    return text[:_NOTE_MAX]