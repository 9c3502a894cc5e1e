"""IA-32 register table: names, sizes, types and aliasing."""

from __future__ import annotations

import enum
from dataclasses import dataclass

REG_DWORD_OFFSET = 1
REG_ECX_INDEX = 2
REG_ESP_INDEX = 5
REG_EBP_INDEX = 6
REG_ESI_INDEX = 7
REG_EDI_INDEX = 8
REG_WORD_OFFSET = 9
REG_BYTE_OFFSET = 17
REG_MMX_OFFSET = 25
REG_SIMD_OFFSET = 33
REG_DEBUG_OFFSET = 41
REG_CTRL_OFFSET = 49
REG_TEST_OFFSET = 57
REG_SEG_OFFSET = 65
REG_LDTR_INDEX = 71
REG_GDTR_INDEX = 72
REG_FPU_OFFSET = 73
REG_FLAGS_INDEX = 81
REG_FPCTRL_INDEX = 82
REG_FPSTATUS_INDEX = 83
REG_FPTAG_INDEX = 84
REG_EIP_INDEX = 85
REG_IP_INDEX = 86
REG_IDTR_INDEX = 87
REG_MXCSG_INDEX = 88
REG_TR_INDEX = 89
REG_CSMSR_INDEX = 90
REG_ESPMSR_INDEX = 91
REG_EIPMSR_INDEX = 92

NUM_X86_REGS = 92

_DWORD, _WORD, _BYTE = 4, 2, 1
_MMX, _SIMD, _DEBUG, _CTRL, _TEST = 8, 16, 4, 4, 4
_SEG, _FPU, _FLAGS = 2, 10, 4
_FPCTRL, _FPSTATUS, _FPTAG, _EIP, _IP = 2, 2, 2, 4, 2


class RegisterType(enum.IntFlag):
    """Classification bits of a register; several may be combined."""

    NONE = 0
    GEN = 0x00001
    IN = 0x00002
    OUT = 0x00004
    LOCAL = 0x00008
    FPU = 0x00010
    SEG = 0x00020
    SIMD = 0x00040
    SYS = 0x00080
    SP = 0x00100
    FP = 0x00200
    PC = 0x00400
    RETADDR = 0x00800
    COND = 0x01000
    ZERO = 0x02000
    RET = 0x04000
    SRC = 0x10000
    DEST = 0x20000
    COUNT = 0x40000


@dataclass(frozen=True)
class Register:
    """A CPU register as referenced by a decoded operand."""

    name: str = ""
    type: RegisterType = RegisterType.NONE
    size: int = 0
    alias: int = 0
    shift: int = 0
    id: int = 0


# Alias slot -> (id of the register this one lives in, bit shift inside it).
_ALIASES: tuple[tuple[int, int], ...] = (
    (0, 0),
    (REG_DWORD_OFFSET, 0),      # al
    (REG_DWORD_OFFSET, 8),      # ah
    (REG_DWORD_OFFSET, 0),      # ax
    (REG_DWORD_OFFSET + 1, 0),  # cl
    (REG_DWORD_OFFSET + 1, 8),  # ch
    (REG_DWORD_OFFSET + 1, 0),  # cx
    (REG_DWORD_OFFSET + 2, 0),  # dl
    (REG_DWORD_OFFSET + 2, 8),  # dh
    (REG_DWORD_OFFSET + 2, 0),  # dx
    (REG_DWORD_OFFSET + 3, 0),  # bl
    (REG_DWORD_OFFSET + 3, 8),  # bh
    (REG_DWORD_OFFSET + 3, 0),  # bx
    (REG_DWORD_OFFSET + 4, 0),  # sp
    (REG_DWORD_OFFSET + 5, 0),  # bp
    (REG_DWORD_OFFSET + 6, 0),  # si
    (REG_DWORD_OFFSET + 7, 0),  # di
    (REG_EIP_INDEX, 0),         # ip
    *((REG_FPU_OFFSET + n, 0) for n in range(8)),  # mm0..mm7
)

_T = RegisterType

# (size, type, alias slot, mnemonic), indexed by register id.
_TABLE: tuple[tuple[int, RegisterType, int, str], ...] = (
    (0, _T.NONE, 0, ""),
    (_DWORD, _T.GEN | _T.RET, 0, "eax"),
    (_DWORD, _T.GEN | _T.COUNT, 0, "ecx"),
    (_DWORD, _T.GEN, 0, "edx"),
    (_DWORD, _T.GEN, 0, "ebx"),
    (_DWORD, _T.GEN | _T.SP, 0, "esp"),
    (_DWORD, _T.GEN | _T.FP, 0, "ebp"),
    (_DWORD, _T.GEN | _T.SRC, 0, "esi"),
    (_DWORD, _T.GEN | _T.DEST, 0, "edi"),
    (_WORD, _T.GEN | _T.RET, 3, "ax"),
    (_WORD, _T.GEN | _T.COUNT, 6, "cx"),
    (_WORD, _T.GEN, 9, "dx"),
    (_WORD, _T.GEN, 12, "bx"),
    (_WORD, _T.GEN | _T.SP, 13, "sp"),
    (_WORD, _T.GEN | _T.FP, 14, "bp"),
    (_WORD, _T.GEN | _T.SRC, 15, "si"),
    (_WORD, _T.GEN | _T.DEST, 16, "di"),
    (_BYTE, _T.GEN, 1, "al"),
    (_BYTE, _T.GEN, 4, "cl"),
    (_BYTE, _T.GEN, 7, "dl"),
    (_BYTE, _T.GEN, 10, "bl"),
    (_BYTE, _T.GEN, 2, "ah"),
    (_BYTE, _T.GEN, 5, "ch"),
    (_BYTE, _T.GEN, 8, "dh"),
    (_BYTE, _T.GEN, 11, "bh"),
    *((_MMX, _T.SIMD, 18 + n, f"mm{n}") for n in range(8)),
    *((_SIMD, _T.SIMD, 0, f"xmm{n}") for n in range(8)),
    *((_DEBUG, _T.SYS, 0, f"dr{n}") for n in range(8)),
    *((_CTRL, _T.SYS, 0, f"cr{n}") for n in range(8)),
    *((_TEST, _T.SYS, 0, f"tr{n}") for n in range(8)),
    *((_SEG, _T.SEG, 0, name) for name in ("es", "cs", "ss", "ds", "fs", "gs")),
    (_DWORD, _T.SYS, 0, "ldtr"),
    (_DWORD, _T.SYS, 0, "gdtr"),
    *((_FPU, _T.FPU, 0, f"st({n})") for n in range(8)),
    (_FLAGS, _T.COND, 0, "eflags"),
    (_FPCTRL, _T.FPU | _T.SYS, 0, "fpctrl"),
    (_FPSTATUS, _T.FPU | _T.SYS, 0, "fpstat"),
    (_FPTAG, _T.FPU | _T.SYS, 0, "fptag"),
    (_EIP, _T.PC, 0, "eip"),
    (_IP, _T.PC, 17, "ip"),
    (_DWORD, _T.SYS, 0, "idtr"),
    (_DWORD, _T.SYS | _T.SIMD, 0, "mxcsr"),
    (16 + 64, _T.SYS, 0, "tr"),
    (_DWORD, _T.SYS, 0, "cs_msr"),
    (_DWORD, _T.SYS, 0, "esp_msr"),
    (_DWORD, _T.SYS, 0, "eip_msr"),
)


def _valid(reg_id: int) -> bool:
    return 0 < reg_id <= NUM_X86_REGS


def register_from_id(reg_id: int) -> Register:
    """Return the register with the given id; raise ValueError if unknown."""
    if not _valid(reg_id):
        raise ValueError(f"unknown register id {reg_id}")
    size, reg_type, alias_slot, name = _TABLE[reg_id]
    alias, shift = _ALIASES[alias_slot] if alias_slot else (0, 0)
    return Register(name=name, type=reg_type, size=size,
                    alias=alias, shift=shift, id=reg_id)


def true_register_id(reg_id: int) -> int:
    """Return the id of the full register an aliased register lives in.

    Unaliased registers map to themselves; unknown ids map to 0.
    """
    if not _valid(reg_id):
        return 0
    alias_slot = _TABLE[reg_id][2]
    return _ALIASES[alias_slot][0] if alias_slot else reg_id